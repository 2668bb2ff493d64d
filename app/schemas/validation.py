"""Input validation schemas with XSS protection"""

from pydantic import BaseModel, Field, field_validator
import re

# Script-like input rejected outright; everything else is stored verbatim
DANGEROUS_PATTERNS = [
    r'<script[^>]*>',
    r'javascript:',
    r'on\w+\s*=',
    r'<iframe',
]


class SafeStringMixin:
    """Mixin for XSS-safe string validation"""

    @staticmethod
    def validate_no_script(value: str) -> str:
        """Block common XSS patterns"""
        if not value:
            return value

        for pattern in DANGEROUS_PATTERNS:
            if re.search(pattern, value, re.IGNORECASE):
                raise ValueError("Invalid characters detected")

        return value


class SearchQuerySchema(BaseModel, SafeStringMixin):
    """Validated catalogue search query"""
    query: str = Field(..., min_length=1, max_length=500)

    @field_validator('query', mode='before')
    @classmethod
    def strip_query(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('query')
    @classmethod
    def clean_query(cls, v):
        return cls.validate_no_script(v)


class CommentSchema(BaseModel, SafeStringMixin):
    """Validated comment body: trimmed, 1-1000 characters, stored as written"""
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator('content', mode='before')
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('content')
    @classmethod
    def clean_content(cls, v):
        return cls.validate_no_script(v)
