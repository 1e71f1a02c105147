"""Models package."""

from .content_item import ContentItem
from .song import Song
from .footer import Footer
from .logo import Logo
from .media_asset import MediaAsset
from .inquiry import Inquiry
