from app.security.principal import Principal
from app.security.policies import Policy, PolicyEvaluator, PolicyRegistry

_evaluator = None


def get_evaluator() -> PolicyEvaluator:
    global _evaluator
    if _evaluator is None:
        from app.security.rules import build_registry

        _evaluator = PolicyEvaluator(build_registry())
    return _evaluator


def secure_session(principal):
    """A SecureSession for ``principal`` over the Flask-SQLAlchemy session."""
    from app.hooks.rules import hooks
    from app.security.gateway import SecureSession

    return SecureSession(principal, get_evaluator(), hooks)


def service_session():
    return secure_session(Principal.service())


__all__ = [
    "Principal",
    "Policy",
    "PolicyEvaluator",
    "PolicyRegistry",
    "get_evaluator",
    "secure_session",
    "service_session",
]
