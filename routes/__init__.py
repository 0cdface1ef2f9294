# Routes package initialization
# This package contains all API routes organized by functionality

from .analytics import analytics_bp

__all__ = ['analytics_bp']
