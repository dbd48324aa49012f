"""
Import template schemas.
"""

from typing import Dict, List
from pydantic import BaseModel


class TemplateFormatInfo(BaseModel):
    """Expected upload columns, in order, with a description of each."""
    columns: List[str]
    descriptions: Dict[str, str]
