from .user import User
from .campaign import Campaign
from .scan import Scan, ScanAggregate
from .locality import Locality

__all__ = [
    'User',
    'Campaign',
    'Scan',
    'ScanAggregate',
    'Locality'
]
