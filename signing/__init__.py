from .base import Signer
from .encrypted_keystore import EncryptedKeystoreSigner
from .env_private_key import EnvPrivateKeySigner, LocalAccountSigner
from .factory import build_signer, get_signer
from .hooks import hooks_from_signer
from .policy import (
    SignerPolicyConfig,
    SignerPolicyViolation,
    maybe_policy_approver,
    policy_approver,
    policy_config_from_env,
)

__all__ = [
    "Signer",
    "LocalAccountSigner",
    "EnvPrivateKeySigner",
    "EncryptedKeystoreSigner",
    "build_signer",
    "get_signer",
    "hooks_from_signer",
    "SignerPolicyConfig",
    "SignerPolicyViolation",
    "maybe_policy_approver",
    "policy_approver",
    "policy_config_from_env",
]
