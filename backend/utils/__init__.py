"""
Utility modules for the orthogonal boundary backend.
"""

from utils.response_models import BaseResponse, OrthogonalizeRequest, OrthogonalizeResponse, OptionsResponse

__all__ = [
    'BaseResponse',
    'OrthogonalizeRequest',
    'OrthogonalizeResponse',
    'OptionsResponse'
]
