"""
tokenledger Package

Fungible-token ledger with ownable, pausable, freezable and time-lockable
extensions.

Core imports are lazily loaded so that importing the package does not
configure logging. For direct module access, import from submodules:

    from tokenledger.tokens import LockableToken, AccessGate
    from tokenledger.config import load_config
    from tokenledger.exceptions import SystemPausedError
"""

__version__ = "1.0.0"


# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'LockableToken':
        from .tokens import LockableToken
        return LockableToken
    elif name == 'AccessGate':
        from .tokens import AccessGate
        return AccessGate
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'tokenledger' has no attribute {name!r}")

__all__ = ['LockableToken', 'AccessGate', 'load_config']
