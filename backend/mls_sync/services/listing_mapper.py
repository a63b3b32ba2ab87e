"""Transform raw MLS vendor listings into the local Property schema.

MLS vendors disagree on field names, so every canonical field is read from an
ordered tuple of aliases; the first non-empty value wins. Transformation never
raises: missing or unparseable values degrade to documented defaults.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any

from mls_sync.models.property import PropertyStatus

logger = logging.getLogger(__name__)

MLS_NUMBER_FIELDS = ("MLSNumber", "mlsNumber", "ListingId", "id")
TITLE_FIELDS = ("ListingTitle", "title")
DESCRIPTION_FIELDS = ("Remarks", "PublicRemarks", "description", "Description")
PRICE_FIELDS = ("ListPrice", "price")
ADDRESS_FIELDS = ("UnparsedAddress", "address", "Address")
CITY_FIELDS = ("City", "city")
STATE_FIELDS = ("StateOrProvince", "state")
ZIP_CODE_FIELDS = ("PostalCode", "zipCode", "zip")
LATITUDE_FIELDS = ("Latitude", "latitude")
LONGITUDE_FIELDS = ("Longitude", "longitude")
BEDROOMS_FIELDS = ("BedroomsTotal", "bedrooms")
BATHROOMS_FIELDS = ("BathroomsTotalInteger", "bathrooms")
SQUARE_FEET_FIELDS = ("LivingArea", "squareFeet")
LOT_SIZE_FIELDS = ("LotSizeAcres", "lotSize")
PROPERTY_TYPE_FIELDS = ("PropertyType", "propertyType")
STATUS_FIELDS = ("StandardStatus", "status")
YEAR_BUILT_FIELDS = ("YearBuilt", "yearBuilt")
GARAGE_FIELDS = ("GarageSpaces", "garage")
PARKING_FIELDS = ("ParkingTotal", "parkingSpaces")
PROPERTY_TAX_FIELDS = ("TaxAmount", "propertyTax")
HOA_FEE_FIELDS = ("AssociationFee", "hoaFee")
LISTING_DATE_FIELDS = ("ListingContractDate", "listingDate")
LAST_MODIFIED_FIELDS = ("ModificationTimestamp", "lastModified")

IMAGE_LIST_FIELDS = ("Media", "images", "Photos")
IMAGE_URL_FIELDS = ("Url", "url", "MediaURL")
THUMBNAIL_URL_FIELDS = ("ThumbnailUrl", "thumbnailUrl")
CAPTION_FIELDS = ("Caption", "caption")

FEATURE_LIST_FIELDS = ("Features", "features", "Amenities")
FEATURE_NAME_FIELDS = ("Name", "name")
FEATURE_CATEGORY_FIELDS = ("Category", "category")

DEFAULT_FEATURE_CATEGORY = "General"
DEFAULT_MLS_STATUS = "Active"
DEFAULT_PROPERTY_TYPE = "Unknown"

MLS_STATUS_MAP: dict[str, PropertyStatus] = {
    "Active": PropertyStatus.ACTIVE,
    "Pending": PropertyStatus.PENDING,
    "Sold": PropertyStatus.SOLD,
    "Withdrawn": PropertyStatus.WITHDRAWN,
    "Expired": PropertyStatus.EXPIRED,
    "Cancelled": PropertyStatus.CANCELLED,
    "Coming Soon": PropertyStatus.COMING_SOON,
}

_NUMBER_RE = re.compile(r"-?[\d,]*\.?\d+")


def first_value(data: dict[str, Any], fields: tuple[str, ...]) -> Any:
    """Return the first non-empty value among ``fields``, or None."""
    if not isinstance(data, dict):
        return None
    for field in fields:
        value = data.get(field)
        if value is not None and value != "":
            return value
    return None


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce ``value`` to a float, e.g. '$175,000' -> 175000.0."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if not match:
            return default
        try:
            number = float(match.group().replace(",", ""))
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def to_int(value: Any, default: int = 0) -> int:
    """Coerce ``value`` to an int, truncating decimals ('1,010 sqft' -> 1010)."""
    return int(to_float(value, float(default)))


def _to_str(value: Any, default: str = "") -> str:
    return str(value) if value is not None else default


def utcnow() -> datetime:
    """Current time as naive UTC, the convention of every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 date or timestamp into naive UTC.

    Returns None when the value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_naive_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        logger.debug("Unparseable MLS timestamp: %r", value)
        return None


def map_mls_status(mls_status: Any) -> str:
    """Map a vendor status to a PropertyStatus value, defaulting to active."""
    status = MLS_STATUS_MAP.get(mls_status) if isinstance(mls_status, str) else None
    return (status or PropertyStatus.ACTIVE).value


def get_mls_number(mls_listing: dict[str, Any]) -> str | None:
    value = first_value(mls_listing, MLS_NUMBER_FIELDS)
    return str(value) if value is not None else None


def transform_listing(mls_listing: dict[str, Any]) -> dict[str, Any]:
    """Transform a vendor listing into keyword arguments for ``Property``."""
    bedrooms = to_int(first_value(mls_listing, BEDROOMS_FIELDS))
    bathrooms = to_float(first_value(mls_listing, BATHROOMS_FIELDS))
    property_type = _to_str(
        first_value(mls_listing, PROPERTY_TYPE_FIELDS), DEFAULT_PROPERTY_TYPE
    )

    title = first_value(mls_listing, TITLE_FIELDS)
    if title is None:
        title = f"{bedrooms}BR {bathrooms:g}BA {property_type}"

    raw_status = first_value(mls_listing, STATUS_FIELDS)
    last_modified = parse_timestamp(first_value(mls_listing, LAST_MODIFIED_FIELDS))

    return {
        "mls_number": get_mls_number(mls_listing),
        "title": str(title),
        "description": _to_str(first_value(mls_listing, DESCRIPTION_FIELDS)),
        "price": to_float(first_value(mls_listing, PRICE_FIELDS)),
        "address": _to_str(first_value(mls_listing, ADDRESS_FIELDS)),
        "city": _to_str(first_value(mls_listing, CITY_FIELDS)),
        "state": _to_str(first_value(mls_listing, STATE_FIELDS)),
        "zip_code": _to_str(first_value(mls_listing, ZIP_CODE_FIELDS)),
        "latitude": to_float(first_value(mls_listing, LATITUDE_FIELDS)),
        "longitude": to_float(first_value(mls_listing, LONGITUDE_FIELDS)),
        "bedrooms": bedrooms,
        "bathrooms": bathrooms,
        "square_feet": to_int(first_value(mls_listing, SQUARE_FEET_FIELDS)),
        "lot_size": to_float(first_value(mls_listing, LOT_SIZE_FIELDS)),
        "property_type": property_type,
        "status": map_mls_status(raw_status),
        "year_built": to_int(first_value(mls_listing, YEAR_BUILT_FIELDS)),
        "garage": to_int(first_value(mls_listing, GARAGE_FIELDS)),
        "parking_spaces": to_int(first_value(mls_listing, PARKING_FIELDS)),
        "property_tax": to_float(first_value(mls_listing, PROPERTY_TAX_FIELDS)),
        "hoa_fee": to_float(first_value(mls_listing, HOA_FEE_FIELDS)),
        "mls_status": _to_str(raw_status, DEFAULT_MLS_STATUS),
        "listing_date": parse_timestamp(first_value(mls_listing, LISTING_DATE_FIELDS)),
        "last_modified": last_modified or utcnow(),
    }


def transform_images(
    mls_listing: dict[str, Any], property_id: int
) -> list[dict[str, Any]]:
    """Build PropertyImage rows; the first image is primary.

    Entries may be bare URL strings or objects; entries without a URL are
    skipped without disturbing the order of the rest.
    """
    raw_images = first_value(mls_listing, IMAGE_LIST_FIELDS) or []
    if not isinstance(raw_images, list):
        return []

    mls_number = get_mls_number(mls_listing)
    images: list[dict[str, Any]] = []
    for img in raw_images:
        if isinstance(img, dict):
            url = first_value(img, IMAGE_URL_FIELDS)
            thumbnail = first_value(img, THUMBNAIL_URL_FIELDS) or url
            caption = _to_str(first_value(img, CAPTION_FIELDS))
        else:
            url = img or None
            thumbnail = url
            caption = ""
        if not url:
            continue
        index = len(images)
        images.append(
            {
                "property_id": property_id,
                "mls_number": mls_number,
                "image_url": str(url),
                "thumbnail_url": str(thumbnail),
                "is_primary": index == 0,
                "display_order": index,
                "caption": caption,
            }
        )
    return images


def transform_features(
    mls_listing: dict[str, Any], property_id: int
) -> list[dict[str, Any]]:
    """Build PropertyFeature rows from string or object feature entries."""
    raw_features = first_value(mls_listing, FEATURE_LIST_FIELDS) or []
    if not isinstance(raw_features, list):
        return []

    mls_number = get_mls_number(mls_listing)
    features: list[dict[str, Any]] = []
    for feature in raw_features:
        if isinstance(feature, dict):
            name = _to_str(first_value(feature, FEATURE_NAME_FIELDS))
            category = _to_str(
                first_value(feature, FEATURE_CATEGORY_FIELDS),
                DEFAULT_FEATURE_CATEGORY,
            )
        else:
            name = _to_str(feature)
            category = DEFAULT_FEATURE_CATEGORY
        if not name:
            continue
        features.append(
            {
                "property_id": property_id,
                "mls_number": mls_number,
                "feature": name,
                "category": category,
            }
        )
    return features
