from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ProductDeleteResult(BaseModel):
    id: str
    action: Literal["deleted", "archived"]
