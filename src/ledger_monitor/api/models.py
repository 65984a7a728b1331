from pydantic import BaseModel, Field


class HeightResponse(BaseModel):
    """Response model for the monitor's last known height."""

    height: int = Field(..., description="Last block count reported by the node")
    node_url: str = Field(..., description="Node the monitor polls")


class PopulatedResponse(BaseModel):
    """Response model for a population query."""

    height: int = Field(..., description="Block height that was queried")
    populated: bool = Field(
        ...,
        description="True if the block holds transactions, or if the node cannot tell",
    )


class FeaturesResponse(BaseModel):
    """Response model for optional node features."""

    populated_blocks: bool = Field(
        ..., description="Whether the node answers populated-block scans"
    )
