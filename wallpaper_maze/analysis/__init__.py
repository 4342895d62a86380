from .lift_verifier import LiftVerifier, CheckResult, VerificationReport

__all__ = [
    'LiftVerifier',
    'CheckResult',
    'VerificationReport',
]
