# Import every model here so Alembic can discover them.

from leadboard.models.lead import Lead  # noqa: F401
from leadboard.models.kanban import KanbanBoard, KanbanCardHistory  # noqa: F401
from leadboard.models.lead_property_history import LeadPropertyHistory  # noqa: F401
