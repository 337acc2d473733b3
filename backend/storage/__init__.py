"""File-based JSON storage.

Data layout:
  data/
    config.json   App settings (model connection, chat behaviour)

Conversations live in memory only; see backend.sessions.

Config: get_config() returns defaults merged with stored values.
update_config() applies partial updates — sections are merged key-by-key,
unknown keys are ignored, scalars overwritten.
"""

# Re-export all public symbols so `from backend import storage` keeps working.

from .core import (  # noqa: F401
    data_dir,
    init_storage,
)

from .config import (  # noqa: F401
    get_config,
    update_config,
)
