from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    total_files: int
    total_access_requests: int
    total_whitelisted_ips: int
    new_files_this_week: int
    denied_requests_last_24h: int
    recently_added_ips: int = Field(..., description="Whitelist entries created in the last 7 days")
