from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    message: str


class MemoryUsage(BaseModel):
    max_rss: int
    max_rss_formatted: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime: float
    version: str
    environment: str
    memory: MemoryUsage | None = None
