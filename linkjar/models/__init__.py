# Models package — import all models here so Alembic can discover them.

from linkjar.models.account import Account  # noqa: F401
from linkjar.models.profile import Profile  # noqa: F401
from linkjar.models.tip import Tip  # noqa: F401
from linkjar.models.audit import AuditEvent  # noqa: F401
