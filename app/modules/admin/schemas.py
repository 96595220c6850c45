from typing import Dict

from app.core.schemas import CamelModel


class DatabaseStatus(CamelModel):
    tables: Dict[str, int]
    total_records: int
    database_path: str
    size_mb: float
    timestamp: str
