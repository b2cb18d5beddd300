from .acquire import acquire_node
from .ingest import ingest_node
from .descriptive import descriptive_stats_node
from .charts import charts_node

__all__ = [
    "acquire_node",
    "ingest_node",
    "descriptive_stats_node",
    "charts_node",
]
