"""
SQLite adapters for the library ports.

Blocking sqlite3 calls run in a worker thread (asyncio.to_thread) so the
async ports never block the event loop. Each call opens its own connection.
"""

import asyncio
import builtins
import json
import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from src.adapters.clock import SystemClock
from src.core.ports.library import (
    UNSET,
    AssetFilters,
    Reservation,
    ReserveRequest,
    Unset,
    WriteTarget,
)
from src.core.ports.time import TimePort
from src.domain.entities import Asset, Folder, Tag
from src.domain.errors import NotEmptyError
from src.domain.naming import generate_storage_key, slugify


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _uuid_or_none(value: str | None) -> UUID | None:
    return UUID(value) if value else None


def _str_or_none(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


_FOLDER_SELECT = """
    SELECT f.*,
        (SELECT COUNT(*) FROM folders c WHERE c.parent_id = f.id) AS child_count,
        (SELECT COUNT(*) FROM assets a WHERE a.folder_id = f.id) AS asset_count
    FROM folders f
"""

_SORT_COLUMNS = {
    "created_at": "created_at",
    "filename": "filename COLLATE NOCASE",
    "size_bytes": "size_bytes",
}


class SQLiteLibraryRepo:
    def __init__(
        self,
        db_path: str,
        *,
        clock: TimePort | None = None,
        public_base_url: str = "/media",
    ):
        self.db_path = db_path
        self._clock = clock or SystemClock()
        self._public_base_url = public_base_url.rstrip("/")

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    # --- Async port ---

    async def list_folders(self, parent_id: UUID | None) -> builtins.list[Folder]:
        return await asyncio.to_thread(self._list_folders, parent_id)

    async def list_assets(
        self,
        folder_id: UUID | None,
        filters: AssetFilters | None = None,
    ) -> builtins.list[Asset]:
        return await asyncio.to_thread(self._list_assets, folder_id, filters or AssetFilters())

    async def get_folder(self, folder_id: UUID) -> Folder | None:
        return await asyncio.to_thread(self._get_folder, folder_id)

    async def get_asset(self, asset_id: UUID) -> Asset | None:
        return await asyncio.to_thread(self._get_asset, asset_id)

    async def create_folder(self, name: str, parent_id: UUID | None = None) -> Folder:
        return await asyncio.to_thread(self._create_folder, name, parent_id)

    async def update_folder(
        self,
        folder_id: UUID,
        *,
        parent_id: UUID | None | Unset = UNSET,
        name: str | None = None,
    ) -> Folder:
        return await asyncio.to_thread(self._update_folder, folder_id, parent_id, name)

    async def delete_folder(self, folder_id: UUID, recursive: bool = False) -> None:
        await asyncio.to_thread(self._delete_folder, folder_id, recursive)

    async def update_asset(
        self,
        asset_id: UUID,
        *,
        folder_id: UUID | None | Unset = UNSET,
        tag_ids: builtins.list[UUID] | None = None,
    ) -> Asset:
        return await asyncio.to_thread(self._update_asset, asset_id, folder_id, tag_ids)

    async def delete_asset(self, asset_id: UUID) -> None:
        await asyncio.to_thread(self._delete_asset, asset_id)

    async def reserve_upload(self, request: ReserveRequest) -> Reservation:
        return await asyncio.to_thread(self._reserve_upload, request)

    # --- Seeding (sync) ---

    def add_tag(self, tag: Tag) -> Tag:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO tags (id, name) VALUES (?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name=excluded.name",
                (str(tag.id), tag.name),
            )
            conn.commit()
            return tag
        finally:
            conn.close()

    # --- Blocking implementation ---

    def _list_folders(self, parent_id: UUID | None) -> builtins.list[Folder]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"{_FOLDER_SELECT} WHERE f.parent_id IS ? "
                "ORDER BY f.sort_order ASC, f.name COLLATE NOCASE ASC",
                (_str_or_none(parent_id),),
            ).fetchall()
            return [self._map_folder(r) for r in rows]
        finally:
            conn.close()

    def _list_assets(self, folder_id: UUID | None, filters: AssetFilters) -> builtins.list[Asset]:
        query = "SELECT * FROM assets WHERE folder_id IS ?"
        params: builtins.list[Any] = [_str_or_none(folder_id)]

        if filters.search:
            query += " AND (filename LIKE ? OR alt LIKE ?)"
            pattern = f"%{filters.search}%"
            params.extend([pattern, pattern])
        if filters.tags:
            placeholders = ", ".join("?" for _ in filters.tags)
            query += (
                " AND EXISTS (SELECT 1 FROM asset_tags at JOIN tags t ON t.id = at.tag_id"
                f" WHERE at.asset_id = assets.id AND t.name IN ({placeholders}))"
            )
            params.extend(filters.tags)
        if filters.mime_type_prefix:
            query += " AND mime_type LIKE ?"
            params.append(f"{filters.mime_type_prefix}%")

        direction = "DESC" if filters.sort_order == "desc" else "ASC"
        query += f" ORDER BY {_SORT_COLUMNS[filters.sort_by]} {direction}"

        conn = self._get_conn()
        try:
            rows = conn.execute(query, params).fetchall()
            tags = self._load_tags(conn, [r["id"] for r in rows])
            return [self._map_asset(r, tags.get(r["id"], [])) for r in rows]
        finally:
            conn.close()

    def _get_folder(self, folder_id: UUID) -> Folder | None:
        conn = self._get_conn()
        try:
            return self._fetch_folder(conn, folder_id)
        finally:
            conn.close()

    def _get_asset(self, asset_id: UUID) -> Asset | None:
        conn = self._get_conn()
        try:
            return self._fetch_asset(conn, asset_id)
        finally:
            conn.close()

    def _create_folder(self, name: str, parent_id: UUID | None) -> Folder:
        conn = self._get_conn()
        try:
            if parent_id is not None and self._fetch_folder(conn, parent_id) is None:
                raise KeyError(f"Parent folder {parent_id} not found")
            folder = Folder(
                name=name,
                slug=slugify(name),
                parent_id=parent_id,
                created_at=self._clock.now_utc(),
            )
            conn.execute(
                """
                INSERT INTO folders (id, name, slug, parent_id, sort_order, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    str(folder.id),
                    folder.name,
                    folder.slug,
                    _str_or_none(folder.parent_id),
                    folder.sort_order,
                    folder.created_at.isoformat(),
                ),
            )
            conn.commit()
            return folder
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _update_folder(
        self,
        folder_id: UUID,
        parent_id: UUID | None | Unset,
        name: str | None,
    ) -> Folder:
        conn = self._get_conn()
        try:
            if self._fetch_folder(conn, folder_id) is None:
                raise KeyError(f"Folder {folder_id} not found")
            if parent_id is not UNSET:
                if parent_id is not None and self._fetch_folder(conn, parent_id) is None:
                    raise KeyError(f"Parent folder {parent_id} not found")
                conn.execute(
                    "UPDATE folders SET parent_id = ? WHERE id = ?",
                    (_str_or_none(parent_id), str(folder_id)),
                )
            if name is not None:
                conn.execute(
                    "UPDATE folders SET name = ?, slug = ? WHERE id = ?",
                    (name, slugify(name), str(folder_id)),
                )
            conn.commit()
            folder = self._fetch_folder(conn, folder_id)
            assert folder is not None
            return folder
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _delete_folder(self, folder_id: UUID, recursive: bool) -> None:
        conn = self._get_conn()
        try:
            folder = self._fetch_folder(conn, folder_id)
            if folder is None:
                raise KeyError(f"Folder {folder_id} not found")
            if not recursive and not folder.is_empty:
                raise NotEmptyError([folder_id])
            # Subfolders and their assets go with it (ON DELETE CASCADE).
            conn.execute("DELETE FROM folders WHERE id = ?", (str(folder_id),))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _update_asset(
        self,
        asset_id: UUID,
        folder_id: UUID | None | Unset,
        tag_ids: builtins.list[UUID] | None,
    ) -> Asset:
        conn = self._get_conn()
        try:
            if self._fetch_asset(conn, asset_id) is None:
                raise KeyError(f"Asset {asset_id} not found")
            if folder_id is not UNSET:
                if folder_id is not None and self._fetch_folder(conn, folder_id) is None:
                    raise KeyError(f"Folder {folder_id} not found")
                conn.execute(
                    "UPDATE assets SET folder_id = ? WHERE id = ?",
                    (_str_or_none(folder_id), str(asset_id)),
                )
            if tag_ids is not None:
                self._replace_tags(conn, asset_id, tag_ids)
            conn.commit()
            asset = self._fetch_asset(conn, asset_id)
            assert asset is not None
            return asset
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _delete_asset(self, asset_id: UUID) -> None:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM assets WHERE id = ?", (str(asset_id),))
            if cursor.rowcount == 0:
                raise KeyError(f"Asset {asset_id} not found")
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _reserve_upload(self, request: ReserveRequest) -> Reservation:
        now = self._clock.now_utc()
        key = generate_storage_key(request.filename, now)
        target = WriteTarget(key=key, url=f"{self._public_base_url}/{key}")

        conn = self._get_conn()
        try:
            if request.replace_asset_id is not None:
                existing = self._fetch_asset(conn, request.replace_asset_id)
                if existing is None:
                    raise KeyError(f"Asset {request.replace_asset_id} not found")
                asset = existing.model_copy(
                    update={
                        "filename": request.filename,
                        "url": target.url,
                        "storage_key": key,
                        "mime_type": request.mime_type,
                        "size_bytes": request.size_bytes,
                        "width": request.width,
                        "height": request.height,
                    }
                )
                is_new = False
            else:
                if request.folder_id is not None and self._fetch_folder(conn, request.folder_id) is None:
                    raise KeyError(f"Folder {request.folder_id} not found")
                asset = Asset(
                    id=uuid4(),
                    filename=request.filename,
                    url=target.url,
                    storage_key=key,
                    mime_type=request.mime_type,
                    size_bytes=request.size_bytes,
                    width=request.width,
                    height=request.height,
                    alt=request.alt,
                    folder_id=request.folder_id,
                    created_at=now,
                )
                is_new = True

            self._upsert_asset(conn, asset)
            if is_new and request.tag_ids:
                self._replace_tags(conn, asset.id, list(request.tag_ids))
            conn.commit()

            stored = self._fetch_asset(conn, asset.id)
            assert stored is not None
            return Reservation(target=target, asset=stored, is_new=is_new)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # --- Row helpers ---

    def _upsert_asset(self, conn: sqlite3.Connection, asset: Asset) -> None:
        conn.execute(
            """
            INSERT INTO assets (
                id, filename, url, storage_key, mime_type, size_bytes,
                width, height, alt, folder_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                filename=excluded.filename,
                url=excluded.url,
                storage_key=excluded.storage_key,
                mime_type=excluded.mime_type,
                size_bytes=excluded.size_bytes,
                width=excluded.width,
                height=excluded.height,
                alt=excluded.alt,
                folder_id=excluded.folder_id
        """,
            (
                str(asset.id),
                asset.filename,
                asset.url,
                asset.storage_key,
                asset.mime_type,
                asset.size_bytes,
                asset.width,
                asset.height,
                asset.alt,
                _str_or_none(asset.folder_id),
                asset.created_at.isoformat(),
            ),
        )
        if asset.tags:
            for tag in asset.tags:
                conn.execute(
                    "INSERT OR IGNORE INTO tags (id, name) VALUES (?, ?)",
                    (str(tag.id), tag.name),
                )
            self._replace_tags(conn, asset.id, [t.id for t in asset.tags])

    def _replace_tags(
        self, conn: sqlite3.Connection, asset_id: UUID, tag_ids: builtins.list[UUID]
    ) -> None:
        conn.execute("DELETE FROM asset_tags WHERE asset_id = ?", (str(asset_id),))
        conn.executemany(
            "INSERT INTO asset_tags (asset_id, tag_id) VALUES (?, ?)",
            [(str(asset_id), str(tid)) for tid in tag_ids],
        )

    def _load_tags(
        self, conn: sqlite3.Connection, asset_ids: builtins.list[str]
    ) -> dict[str, builtins.list[Tag]]:
        if not asset_ids:
            return {}
        placeholders = ", ".join("?" for _ in asset_ids)
        rows = conn.execute(
            "SELECT at.asset_id, t.id, t.name FROM asset_tags at "
            f"JOIN tags t ON t.id = at.tag_id WHERE at.asset_id IN ({placeholders}) "
            "ORDER BY t.name",
            asset_ids,
        ).fetchall()
        tags: dict[str, builtins.list[Tag]] = {}
        for row in rows:
            tags.setdefault(row["asset_id"], []).append(Tag(id=UUID(row["id"]), name=row["name"]))
        return tags

    def _fetch_folder(self, conn: sqlite3.Connection, folder_id: UUID) -> Folder | None:
        row = conn.execute(f"{_FOLDER_SELECT} WHERE f.id = ?", (str(folder_id),)).fetchone()
        return self._map_folder(row) if row else None

    def _fetch_asset(self, conn: sqlite3.Connection, asset_id: UUID) -> Asset | None:
        row = conn.execute("SELECT * FROM assets WHERE id = ?", (str(asset_id),)).fetchone()
        if not row:
            return None
        tags = self._load_tags(conn, [row["id"]])
        return self._map_asset(row, tags.get(row["id"], []))

    def _map_folder(self, row: dict[str, Any]) -> Folder:
        return Folder(
            id=UUID(row["id"]),
            name=row["name"],
            slug=row["slug"],
            parent_id=_uuid_or_none(row["parent_id"]),
            child_count=row["child_count"],
            asset_count=row["asset_count"],
            sort_order=row["sort_order"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _map_asset(self, row: dict[str, Any], tags: builtins.list[Tag]) -> Asset:
        return Asset(
            id=UUID(row["id"]),
            filename=row["filename"],
            url=row["url"],
            storage_key=row["storage_key"],
            mime_type=row["mime_type"],
            size_bytes=row["size_bytes"],
            width=row["width"],
            height=row["height"],
            alt=row["alt"],
            folder_id=_uuid_or_none(row["folder_id"]),
            tags=tags,
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteWatermarkSettingsRepo:
    """Watermark settings stored as one JSON document in the settings table."""

    KEY = "watermark"

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def get(self) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT value_json FROM settings WHERE key = ?", (self.KEY,)
            ).fetchone()
            if not row:
                return None
            value = json.loads(row["value_json"])
            return value if isinstance(value, dict) else None
        finally:
            conn.close()

    def save(self, values: dict[str, Any]) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO settings (key, value_json, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value_json=excluded.value_json,
                    updated_at=excluded.updated_at
            """,
                (self.KEY, json.dumps(values), datetime.now(UTC).isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
