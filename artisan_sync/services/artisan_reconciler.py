"""
Artisan Reconciler
Maps one partner artisan record onto accounts, sellers, the category tree,
seller services and service locations.

Every step is a natural-key get-or-create, so reconciling the same record
again converges to the same rows:

    UserAccount        (source, source_id)
    Seller             (user_account_id)
    Category           (hcode)  "<cat>", "<cat>.<sub>", "<cat>.<sub>.<service>"
    SellerService      (seller_id, category_id, name)
    SellerServiceLocation (seller_service_id)
"""
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy.orm import Session

from artisan_sync.config import get_settings
from artisan_sync.exceptions import RecordReconcileError
from artisan_sync.models.base import SessionLocal, get_or_create
from artisan_sync.models.category import Category, build_hcode
from artisan_sync.models.seller import Seller, SellerService, SellerServiceLocation
from artisan_sync.models.user import UserAccount
from artisan_sync.utils.logger import log

settings = get_settings()

ARTISAN_ROLE = "ARTISAN"


def _has_id(value: Any) -> bool:
    # Numeric 0 means "no id"; the string "0" is a real id
    if isinstance(value, str):
        return value.strip() != ""
    return value is not None and value is not False and value != 0


def _parse_coordinate(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        log.warning(f"Ignoring unparseable coordinate: {value!r}")
        return None


def _as_list(value: Any) -> List[Any]:
    """Partner sends serviceCategory as either one object or a list"""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class ArtisanReconciler:
    """
    Idempotent upsert of partner artisan records, one transaction per record.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        source_name: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.source_name = source_name or settings.vishwakarma_source_name

    def reconcile(self, artisan: Dict[str, Any]) -> Dict[str, int]:
        """
        Reconcile one artisan record.

        Returns:
            Dict with inserted/updated (account level, 0 or 1 each) plus
            counts of category, service and location rows created and of
            entries skipped for missing ids

        Raises:
            RecordReconcileError: the record was rolled back and not applied
        """
        artisan_id = artisan.get("artisanId") if isinstance(artisan, dict) else None
        if not _has_id(artisan_id):
            raise RecordReconcileError(artisan_id, "missing artisanId")

        db = self.session_factory()
        try:
            result = self._reconcile(db, artisan)
            db.commit()
            return result
        except Exception as e:
            db.rollback()
            raise RecordReconcileError(artisan_id, str(e)) from e
        finally:
            db.close()

    def _reconcile(self, db: Session, artisan: Dict[str, Any]) -> Dict[str, int]:
        result = {
            "inserted": 0,
            "updated": 0,
            "categories_created": 0,
            "services_created": 0,
            "locations_created": 0,
            "skipped_entries": 0,
        }

        latitude = artisan.get("lattitude")
        longitude = artisan.get("longitude")
        location = f"{latitude},{longitude}" if latitude is not None or longitude is not None else None

        # 1. UserAccount
        account, created = get_or_create(
            db,
            UserAccount,
            defaults={
                "fullname": artisan.get("artisanName"),
                "mobile": artisan.get("contactNo"),
                "last_location": location,
                "roles": {"seller": [ARTISAN_ROLE], "buyer": []},
            },
            source=self.source_name,
            source_id=str(artisan["artisanId"]).strip(),
        )
        if created:
            result["inserted"] += 1
        else:
            account.fullname = artisan.get("artisanName")
            account.mobile = artisan.get("contactNo")
            account.last_location = location
            db.flush()
            result["updated"] += 1

        # 2. Seller
        seller, _ = get_or_create(
            db,
            Seller,
            defaults={"fullname": artisan.get("artisanName")},
            user_account_id=account.id,
        )

        # 3. Category tree, services and locations
        for cat_data in _as_list(artisan.get("serviceCategory")):
            if not isinstance(cat_data, dict) or not _has_id(cat_data.get("serviceCategoryId")):
                result["skipped_entries"] += 1
                continue

            root_hcode = build_hcode(None, cat_data["serviceCategoryId"])
            root = self._category(db, root_hcode, cat_data.get("serviceCategoryName"), None, result)

            for sub_data in _as_list(cat_data.get("serviceSubCategory")):
                if not isinstance(sub_data, dict) or not _has_id(sub_data.get("serviceSubCategoryId")):
                    result["skipped_entries"] += 1
                    continue

                sub_hcode = build_hcode(root_hcode, sub_data["serviceSubCategoryId"])
                sub = self._category(db, sub_hcode, sub_data.get("subCategoryName"), root, result)

                for service_data in _as_list(sub_data.get("service")):
                    if not isinstance(service_data, dict) or not _has_id(service_data.get("serviceId")):
                        result["skipped_entries"] += 1
                        continue

                    service_hcode = build_hcode(sub_hcode, service_data["serviceId"])
                    leaf = self._category(db, service_hcode, service_data.get("serviceName"), sub, result)

                    self._seller_service(
                        db,
                        seller,
                        leaf,
                        service_data.get("serviceName") or leaf.name,
                        location,
                        latitude,
                        longitude,
                        result,
                    )

        return result

    def _category(
        self,
        db: Session,
        hcode: str,
        name: Optional[str],
        parent: Optional[Category],
        result: Dict[str, int],
    ) -> Category:
        # Names are set only at creation
        category, created = get_or_create(
            db,
            Category,
            defaults={
                "name": name or hcode,
                "parent_id": parent.id if parent is not None else None,
            },
            hcode=hcode,
        )
        if created:
            result["categories_created"] += 1
        return category

    def _seller_service(
        self,
        db: Session,
        seller: Seller,
        leaf: Category,
        name: str,
        location: Optional[str],
        latitude: Any,
        longitude: Any,
        result: Dict[str, int],
    ) -> SellerService:
        seller_service, created = get_or_create(
            db,
            SellerService,
            defaults={"description": None, "co_ordinates": location},
            seller_id=seller.id,
            category_id=leaf.id,
            name=name,
        )
        if created:
            result["services_created"] += 1

        _, location_created = get_or_create(
            db,
            SellerServiceLocation,
            defaults={
                "latitude": _parse_coordinate(latitude),
                "longitude": _parse_coordinate(longitude),
            },
            seller_service_id=seller_service.id,
        )
        if location_created:
            result["locations_created"] += 1

        return seller_service
