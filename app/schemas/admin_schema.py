# app/schemas/admin_schema.py
from typing import List

from app.schemas.common_schema import CamelModel
from app.schemas.user_schema import UserOut


class DashboardStats(CamelModel):
    total_clients: int
    total_sellers: int
    total_gigs: int
    total_orders: int


class ClientList(CamelModel):
    clients: List[UserOut]
