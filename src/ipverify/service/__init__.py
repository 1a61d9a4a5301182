from ipverify.service.factory import create_verification_service
from ipverify.service.verifier import VerificationService

__all__ = ["VerificationService", "create_verification_service"]
