"""Database models for the artisan sync service"""

from artisan_sync.models.user import UserAccount, UserAccountCall
from artisan_sync.models.category import Category
from artisan_sync.models.seller import Seller, SellerService, SellerServiceLocation
from artisan_sync.models.sync_run import SyncRun
