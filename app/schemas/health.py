from app.schemas.my_base_model import CustomBaseModel


class HealthCheck(CustomBaseModel):
    """Response model for health check"""

    status: str = "oke"
