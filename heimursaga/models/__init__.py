"""
Heimursaga – SQLAlchemy ORM models package.

Imports all model classes so Alembic and the app can discover them
through a single ``from heimursaga.models import *`` import.
"""

from heimursaga.models.explorer import Explorer                  # noqa: F401
from heimursaga.models.expedition import Expedition              # noqa: F401
from heimursaga.models.entry import Entry                        # noqa: F401
from heimursaga.models.sponsorship import Sponsorship            # noqa: F401
from heimursaga.models.engagement import EntryBookmark, EntryLike, EntryView  # noqa: F401
from heimursaga.models.follow import ExplorerFollow              # noqa: F401
from heimursaga.models.notification import Notification          # noqa: F401
