"""
MySQL storage for indexed assets and their marketplace data.
"""
import json
import logging
import re
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

import mysql.connector
from mysql.connector import Error

from ..config import MySQLConfig, get_config
from ..errors import StorageError
from ..models.asset import AssetRecord
from ..models.listing import MarketplaceListing
from ..models.matching import MatchType


logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^\w+$")

ASSETS_TABLE = """
    CREATE TABLE IF NOT EXISTS assets (
        id INT AUTO_INCREMENT PRIMARY KEY,
        name VARCHAR(512) NOT NULL,
        file_path VARCHAR(1024) NOT NULL,
        asset_type VARCHAR(64) NOT NULL,
        file_size BIGINT DEFAULT 0,
        created_date DATETIME NULL,
        modified_date DATETIME NULL,
        first_indexed_at DATETIME NOT NULL,
        file_hash VARCHAR(128) NULL,
        scan_location_id INT NULL,
        listing_id VARCHAR(255) NULL,
        listing_slug VARCHAR(512) NULL,
        listing_title VARCHAR(1024) NULL,
        listing_description MEDIUMTEXT NULL,
        listing_technical_details MEDIUMTEXT NULL,
        listing_seller VARCHAR(512) NULL,
        listing_price DOUBLE NULL,
        listing_release_date VARCHAR(64) NULL,
        listing_last_modified VARCHAR(64) NULL,
        listing_rating_average DOUBLE NULL,
        listing_rating_count INT NULL,
        listing_categories TEXT NULL,
        listing_supported_versions TEXT NULL,
        listing_gallery_images TEXT NULL,
        listing_thumbnail_url VARCHAR(2048) NULL,
        listing_source_url VARCHAR(2048) NULL,
        listing_raw_json MEDIUMTEXT NULL,
        listing_checked_at DATETIME NULL,
        matched_slug VARCHAR(512) NULL,
        match_confidence DOUBLE NULL,
        match_type VARCHAR(32) NULL,
        UNIQUE KEY unique_file_path (file_path(255))
    )
"""

LISTING_COLUMNS = (
    "listing_id",
    "listing_slug",
    "listing_title",
    "listing_description",
    "listing_technical_details",
    "listing_seller",
    "listing_price",
    "listing_release_date",
    "listing_last_modified",
    "listing_rating_average",
    "listing_rating_count",
    "listing_categories",
    "listing_supported_versions",
    "listing_gallery_images",
    "listing_thumbnail_url",
    "listing_source_url",
    "listing_raw_json",
)


def _listing_values(listing: Optional[MarketplaceListing]) -> tuple:
    if listing is None:
        return (None,) * len(LISTING_COLUMNS)
    return (
        listing.id,
        listing.slug,
        listing.title,
        listing.description,
        listing.technical_details,
        listing.seller,
        listing.price,
        listing.release_date,
        listing.last_modified,
        listing.rating_average,
        listing.rating_count,
        json.dumps(listing.categories),
        json.dumps(listing.supported_versions),
        json.dumps(listing.gallery_images),
        listing.thumbnail_url,
        listing.source_url,
        json.dumps(listing.raw_source) if listing.raw_source is not None else None,
    )


def _json_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    try:
        decoded = json.loads(value)
    except ValueError:
        logger.warning(f"Ignoring malformed JSON list column: {value[:80]}")
        return []
    return decoded if isinstance(decoded, list) else []


def _row_to_listing(row: dict[str, Any]) -> Optional[MarketplaceListing]:
    if not any(row.get(column) for column in ("listing_title", "listing_source_url", "listing_raw_json", "listing_checked_at")):
        return None

    raw_source = None
    if row.get("listing_raw_json"):
        try:
            raw_source = json.loads(row["listing_raw_json"])
        except ValueError:
            logger.warning(f"Asset {row.get('id')} has malformed cached listing JSON")
            raw_source = row["listing_raw_json"]

    return MarketplaceListing(
        id=row.get("listing_id"),
        slug=row.get("listing_slug"),
        title=row.get("listing_title"),
        description=row.get("listing_description"),
        technical_details=row.get("listing_technical_details"),
        seller=row.get("listing_seller"),
        price=row.get("listing_price"),
        release_date=row.get("listing_release_date"),
        last_modified=row.get("listing_last_modified"),
        rating_average=row.get("listing_rating_average"),
        rating_count=row.get("listing_rating_count"),
        categories=_json_list(row.get("listing_categories")),
        supported_versions=_json_list(row.get("listing_supported_versions")),
        gallery_images=_json_list(row.get("listing_gallery_images")),
        thumbnail_url=row.get("listing_thumbnail_url"),
        source_url=row.get("listing_source_url"),
        raw_source=raw_source,
    )


def _row_to_record(row: dict[str, Any]) -> AssetRecord:
    return AssetRecord(
        id=row["id"],
        name=row["name"],
        file_path=row["file_path"],
        asset_type=row["asset_type"],
        file_size=row.get("file_size") or 0,
        created_date=row.get("created_date"),
        modified_date=row.get("modified_date"),
        first_indexed_at=row.get("first_indexed_at") or datetime.now(),
        file_hash=row.get("file_hash"),
        scan_location_id=row.get("scan_location_id"),
        listing=_row_to_listing(row),
        listing_checked_at=row.get("listing_checked_at"),
        matched_slug=row.get("matched_slug"),
        match_confidence=row.get("match_confidence"),
        match_type=MatchType(row["match_type"]) if row.get("match_type") else None,
    )


class MySQLAssetStore:
    """
    Asset store on MySQL. One short-lived connection per operation; every
    value goes through parameter binding.
    """

    def __init__(
        self,
        config: Optional[MySQLConfig] = None,
        connect: Optional[Callable[..., Any]] = None,
    ):
        self.config = config or get_config().mysql
        self._connect = connect or mysql.connector.connect

    @property
    def _params(self) -> dict[str, Any]:
        return {
            "host": self.config.host,
            "port": self.config.port,
            "user": self.config.user,
            "password": self.config.password,
            "database": self.config.database,
        }

    def _create_database(self) -> None:
        """Create the database if it doesn't exist."""
        if not _IDENTIFIER.match(self.config.database):
            raise StorageError("create_database", self.config.database, ValueError("invalid database name"))
        params = self._params
        del params["database"]
        conn = self._connect(**params)
        try:
            cursor = conn.cursor()
            cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{self.config.database}`")
        finally:
            conn.close()

    def _get_connection(self):
        try:
            return self._connect(**self._params)
        except Error as e:
            if "Unknown database" not in str(e):
                raise StorageError("connect", f"{self.config.host}/{self.config.database}", e) from e
        try:
            self._create_database()
            return self._connect(**self._params)
        except Error as e:
            raise StorageError("connect", f"{self.config.host}/{self.config.database}", e) from e

    @contextmanager
    def _cursor(self, operation: str, target: object, dictionary: bool = False) -> Iterator[Any]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor(dictionary=dictionary)
            yield cursor
            conn.commit()
        except Error as e:
            conn.rollback()
            raise StorageError(operation, target, e) from e
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Initialize database tables."""
        with self._cursor("init_schema", self.config.database) as cursor:
            cursor.execute(ASSETS_TABLE)
        logger.info(f"Database schema ready in '{self.config.database}'")

    def get_asset(self, asset_id: int) -> Optional[AssetRecord]:
        with self._cursor("get_asset", f"asset {asset_id}", dictionary=True) as cursor:
            cursor.execute("SELECT * FROM assets WHERE id = %s", (asset_id,))
            row = cursor.fetchone()
        return _row_to_record(row) if row else None

    def get_asset_by_path(self, file_path: str) -> Optional[AssetRecord]:
        with self._cursor("get_asset_by_path", file_path, dictionary=True) as cursor:
            cursor.execute("SELECT * FROM assets WHERE file_path = %s", (file_path,))
            row = cursor.fetchone()
        return _row_to_record(row) if row else None

    def insert_asset(self, record: AssetRecord) -> int:
        columns = (
            "name", "file_path", "asset_type", "file_size", "created_date", "modified_date",
            "first_indexed_at", "file_hash", "scan_location_id",
        ) + LISTING_COLUMNS + ("listing_checked_at", "matched_slug", "match_confidence", "match_type")
        values = (
            record.name,
            record.file_path,
            record.asset_type,
            record.file_size,
            record.created_date,
            record.modified_date,
            record.first_indexed_at,
            record.file_hash,
            record.scan_location_id,
        ) + _listing_values(record.listing) + (
            record.listing_checked_at,
            record.matched_slug,
            record.match_confidence,
            record.match_type.value if record.match_type else None,
        )
        placeholders = ", ".join(["%s"] * len(columns))

        with self._cursor("insert_asset", record.file_path) as cursor:
            cursor.execute(
                f"INSERT INTO assets ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            asset_id = cursor.lastrowid
        logger.info(f"Inserted asset {asset_id}: {record.name}")
        return asset_id

    def update_listing_details(self, asset_id: int, listing: MarketplaceListing) -> None:
        assignments = ", ".join(f"{column} = %s" for column in LISTING_COLUMNS)
        with self._cursor("update_listing_details", f"asset {asset_id}") as cursor:
            cursor.execute(
                f"UPDATE assets SET {assignments}, listing_checked_at = %s WHERE id = %s",
                _listing_values(listing) + (datetime.now(), asset_id),
            )
        logger.info(f"Updated marketplace details for asset {asset_id}")

    def update_match_metadata(
        self,
        asset_id: int,
        slug: Optional[str],
        confidence: Optional[float],
        match_type: Optional[MatchType],
    ) -> None:
        with self._cursor("update_match_metadata", f"asset {asset_id}") as cursor:
            cursor.execute(
                """
                UPDATE assets
                SET matched_slug = %s,
                    match_confidence = %s,
                    match_type = %s
                WHERE id = %s
                """,
                (slug, confidence, match_type.value if match_type else None, asset_id),
            )

    def list_assets_with_cached_listing(self) -> list[AssetRecord]:
        with self._cursor("list_assets_with_cached_listing", "assets", dictionary=True) as cursor:
            cursor.execute("SELECT * FROM assets WHERE listing_raw_json IS NOT NULL")
            rows = cursor.fetchall()
        return [_row_to_record(row) for row in rows]
