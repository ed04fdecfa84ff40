# Handler registration order matters: commands before free-text decisions
from . import command_handlers, decision_handlers, error_handlers  # noqa: F401
from .dp import dp

__all__ = ["dp"]
