"""
Input validation utilities for service names and generated content
"""

import re


class ValidationError(Exception):
    """Custom exception for validation errors"""
    pass


class ServiceNameValidator:
    """Validator for user-supplied service names"""

    MIN_LENGTH = 3
    # Render service names and GitHub repo names both stay well under this
    MAX_LENGTH = 63

    DISALLOWED_CHARS = re.compile(r'[^a-zA-Z0-9-]')
    REPEATED_HYPHENS = re.compile(r'-{2,}')
    SLUG_REGEX = re.compile(r'^[a-z0-9-]+$')

    @classmethod
    def normalize(cls, name: str) -> str:
        """
        Normalize a service name into a lowercase slug.

        Every character outside ``[a-zA-Z0-9-]`` becomes a hyphen, runs of
        hyphens collapse to one and leading/trailing hyphens are dropped.
        Slugs longer than MAX_LENGTH are truncated rather than rejected.

        Args:
            name: Raw service name

        Returns:
            Normalized slug matching ``[a-z0-9-]+``

        Raises:
            ValidationError: If the slug is shorter than 3 characters
        """
        if name is None or not str(name).strip():
            raise ValidationError("Service name cannot be empty")

        slug = cls.DISALLOWED_CHARS.sub('-', str(name).strip()).lower()
        slug = cls.REPEATED_HYPHENS.sub('-', slug).strip('-')

        if len(slug) < cls.MIN_LENGTH:
            raise ValidationError(
                f"Service name must be at least {cls.MIN_LENGTH} characters "
                f"after normalization (got '{slug}')"
            )

        if len(slug) > cls.MAX_LENGTH:
            slug = slug[:cls.MAX_LENGTH].rstrip('-')

        return slug


class ContentValidator:
    """Validator for generated site content"""

    @classmethod
    def validate(cls, content: str) -> str:
        """
        Validate generated site content.

        Args:
            content: HTML document to publish

        Returns:
            The content, unchanged

        Raises:
            ValidationError: If content is missing or blank
        """
        if content is None or not isinstance(content, str):
            raise ValidationError("Content is required")

        if not content.strip():
            raise ValidationError("Content cannot be empty")

        return content


def normalize_service_name(name: str) -> str:
    """Convenience function for service name normalization"""
    return ServiceNameValidator.normalize(name)


def validate_content(content: str) -> str:
    """Convenience function for content validation"""
    return ContentValidator.validate(content)


def truncate_message(message: str, limit: int = 500) -> str:
    """Bound an error message to ``limit`` characters."""
    message = message or ""
    if len(message) <= limit:
        return message
    return message[:limit]
