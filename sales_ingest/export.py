"""Export stored sales as JSON files for the web frontend.

Read-only: queries storage and writes ``recent_sales``,
``suburb_stats``, ``postcode_stats``, ``sales_points.geojson`` and
``metadata`` through a ``JsonFileSink``. ``schema_info`` describes the
tables for the data explorer. Output keys are camelCase to match what
the frontend loads.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timezone
from typing import Any

from sales_ingest.models.enums import AreaUnit, ImportStatus
from sales_ingest.sinks.json_file import JsonFileSink
from sales_ingest.store.database import Database
from sales_ingest.store.schema import SCHEMA_TABLES, view_definitions

logger = logging.getLogger(__name__)

RECENT_SALE_COLUMNS = {
    "id": "id",
    "suburb": "suburb",
    "postcode": "postcode",
    "street_name": "streetName",
    "house_number": "houseNumber",
    "unit_number": "unitNumber",
    "purchase_price": "price",
    "contract_date": "contractDate",
    "settlement_date": "settlementDate",
    "area": "area",
    "area_unit": "areaUnit",
    "zone_code": "zoneCode",
    "property_type": "propertyType",
    "property_description": "propertyDescription",
}

TOP_SUBURBS_LIMIT = 20
RECENT_IMPORTS_LIMIT = 10

# GeoJSON points cover at most three months.
GEOJSON_MAX_MONTHS = 3
GEOJSON_LIMIT = 5000

TABLE_SAMPLE_ROWS = 15
VIEW_SAMPLE_ROWS = 10
FULL_SAMPLE_ROWS = 20
COLUMN_VALUES_LIMIT = 50
STATS_TOP_SUBURBS_LIMIT = 30
TREND_MONTHS = 12

PROFILED_COLUMNS = (
    "zone_code",
    "zone_category",
    "property_type",
    "nature_of_property",
    "sale_code",
    "area_unit",
    "district_code",
)


def months_before(day: date, months: int) -> date:
    """Same day of month ``months`` earlier, clamped to the month's last day."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _round(value: Any, ndigits: int = 0) -> int | float | None:
    if value is None:
        return None
    rounded = round(float(value), ndigits)
    return int(rounded) if ndigits == 0 else rounded


def _as_text(value: Any) -> Any:
    # PostgreSQL returns DATE columns as date objects, SQLite as text.
    return value.isoformat() if isinstance(value, date) else value


def price_per_sqm(price: int | None, area: float | None, area_unit: str | None) -> int | None:
    """Price per square metre, only for areas measured in square metres."""
    if not price or not area or area <= 0 or area_unit != AreaUnit.SQUARE_METRES.value:
        return None
    return _round(price / area)


class SalesExporter:
    """Write frontend datasets from the sales database.

    Parameters
    ----------
    db : Database
        Source database.
    sink : JsonFileSink
        Destination for the JSON files.
    """

    def __init__(self, db: Database, sink: JsonFileSink) -> None:
        self.db = db
        self.sink = sink

    def recent_sales(self, months: int = 6, today: date | None = None) -> list[dict[str, Any]]:
        """Sales with a positive price contracted in the last ``months`` months."""
        cutoff = months_before(today or date.today(), months)
        rows = self.db.fetchall_dicts(
            f"SELECT {', '.join(RECENT_SALE_COLUMNS)} FROM property_sales "  # noqa: S608
            "WHERE contract_date >= ? AND purchase_price > 0 "
            "ORDER BY contract_date DESC, id DESC",
            (cutoff.isoformat(),),
        )
        sales = []
        for row in rows:
            sale = {RECENT_SALE_COLUMNS[k]: _as_text(v) for k, v in row.items()}
            sale["pricePerSqm"] = price_per_sqm(row["purchase_price"], row["area"], row["area_unit"])
            sales.append(sale)
        return sales

    def suburb_stats(self) -> list[dict[str, Any]]:
        rows = self.db.fetchall_dicts(
            """
            SELECT suburb, postcode, COUNT(*) AS total_sales,
                   AVG(purchase_price) AS avg_price,
                   MIN(purchase_price) AS min_price,
                   MAX(purchase_price) AS max_price,
                   AVG(area) AS avg_area,
                   MIN(contract_date) AS earliest_sale,
                   MAX(contract_date) AS latest_sale
            FROM property_sales
            WHERE purchase_price > 0
            GROUP BY suburb, postcode
            ORDER BY suburb, postcode
            """
        )
        return [
            {
                "suburb": row["suburb"],
                "postcode": row["postcode"],
                "totalSales": row["total_sales"],
                "avgPrice": _round(row["avg_price"]),
                "minPrice": row["min_price"],
                "maxPrice": row["max_price"],
                "avgArea": _round(row["avg_area"], 1),
                "earliestSale": _as_text(row["earliest_sale"]),
                "latestSale": _as_text(row["latest_sale"]),
            }
            for row in rows
        ]

    def postcode_stats(self) -> list[dict[str, Any]]:
        rows = self.db.fetchall_dicts(
            """
            SELECT postcode, COUNT(*) AS total_sales,
                   AVG(purchase_price) AS avg_price,
                   MIN(purchase_price) AS min_price,
                   MAX(purchase_price) AS max_price,
                   MAX(contract_date) AS latest_sale
            FROM property_sales
            WHERE purchase_price > 0 AND postcode IS NOT NULL
            GROUP BY postcode
            ORDER BY postcode
            """
        )
        suburbs: dict[str, list[str]] = {}
        for postcode, suburb in self.db.fetchall(
            "SELECT DISTINCT postcode, suburb FROM property_sales "
            "WHERE purchase_price > 0 AND postcode IS NOT NULL AND suburb IS NOT NULL "
            "ORDER BY postcode, suburb"
        ):
            suburbs.setdefault(postcode, []).append(suburb)

        return [
            {
                "postcode": row["postcode"],
                "totalSales": row["total_sales"],
                "avgPrice": _round(row["avg_price"]),
                "minPrice": row["min_price"],
                "maxPrice": row["max_price"],
                "suburbs": suburbs.get(row["postcode"], []),
                "latestSale": _as_text(row["latest_sale"]),
            }
            for row in rows
        ]

    def metadata(self) -> dict[str, Any]:
        """Database totals, date and price ranges, top suburbs and recent imports."""
        earliest, latest = self.db.fetchone(
            "SELECT MIN(contract_date), MAX(contract_date) FROM property_sales"
        )
        min_price, max_price, avg_price = self.db.fetchone(
            "SELECT MIN(purchase_price), MAX(purchase_price), AVG(purchase_price) "
            "FROM property_sales WHERE purchase_price > 0"
        )
        top_suburbs = self.db.fetchall(
            "SELECT suburb, COUNT(*) AS sale_count FROM property_sales "
            "GROUP BY suburb ORDER BY sale_count DESC, suburb LIMIT ?",
            (TOP_SUBURBS_LIMIT,),
        )
        recent_imports = self.db.fetchall_dicts(
            "SELECT filename, file_type, file_date, records_inserted, completed_at "
            "FROM import_log WHERE status = ? ORDER BY completed_at DESC, id DESC LIMIT ?",
            (ImportStatus.COMPLETED.value, RECENT_IMPORTS_LIMIT),
        )

        return {
            "generated": datetime.now(timezone.utc).isoformat(),
            "database": {
                "totalSales": self.db.count("property_sales"),
                "totalLegalDescriptions": self.db.count("legal_descriptions"),
                "totalInterests": self.db.count("sale_interests"),
                "totalImports": int(
                    self.db.scalar(
                        "SELECT COUNT(*) FROM import_log WHERE status = ?",
                        (ImportStatus.COMPLETED.value,),
                    )
                ),
            },
            "dateRange": {"earliest": _as_text(earliest), "latest": _as_text(latest)},
            "priceRange": {"min": min_price, "max": max_price, "avg": _round(avg_price)},
            "topSuburbs": [{"suburb": suburb, "count": count} for suburb, count in top_suburbs],
            "recentImports": [
                {
                    "filename": row["filename"],
                    "fileType": row["file_type"],
                    "fileDate": _as_text(row["file_date"]),
                    "recordsInserted": row["records_inserted"],
                    "completedAt": _as_text(row["completed_at"]),
                }
                for row in recent_imports
            ],
        }

    def sales_geojson(self, months: int = GEOJSON_MAX_MONTHS, today: date | None = None) -> dict[str, Any]:
        """Recent sales as a GeoJSON FeatureCollection.

        Sales carry no coordinates, so every feature has a null geometry
        and is meant to be geocoded downstream.
        """
        cutoff = months_before(today or date.today(), months)
        rows = self.db.fetchall_dicts(
            "SELECT id, suburb, postcode, street_name, house_number, unit_number, "
            "purchase_price, contract_date, area, zone_code, property_type "
            "FROM property_sales WHERE contract_date >= ? AND purchase_price > 0 "
            "ORDER BY contract_date DESC, id DESC LIMIT ?",
            (cutoff.isoformat(), GEOJSON_LIMIT),
        )
        features = [
            {
                "type": "Feature",
                "properties": {
                    "id": row["id"],
                    "address": " ".join(
                        part
                        for part in (row["unit_number"], row["house_number"], row["street_name"])
                        if part
                    ),
                    "suburb": row["suburb"],
                    "postcode": row["postcode"],
                    "price": row["purchase_price"],
                    "date": _as_text(row["contract_date"]),
                    "area": row["area"],
                    "zoneCode": row["zone_code"],
                    "propertyType": row["property_type"],
                },
                "geometry": None,
            }
            for row in rows
        ]
        return {
            "type": "FeatureCollection",
            "metadata": {
                "generated": datetime.now(timezone.utc).isoformat(),
                "totalSales": len(features),
                "period": f"{months} months",
                "note": "Coordinates not included, requires geocoding",
            },
            "features": features,
        }

    def export_all(self, months: int = 6, today: date | None = None) -> dict[str, Any]:
        """Write all datasets; returns the metadata document."""
        recent = self.recent_sales(months, today)
        self.sink.write_batch("recent_sales", recent)
        logger.info("  ✓ Exported %d recent sales (last %d months)", len(recent), months)

        suburbs = self.suburb_stats()
        self.sink.write_batch("suburb_stats", suburbs)
        logger.info("  ✓ Exported stats for %d suburbs", len(suburbs))

        postcodes = self.postcode_stats()
        self.sink.write_batch("postcode_stats", postcodes)
        logger.info("  ✓ Exported stats for %d postcodes", len(postcodes))

        geojson = self.sales_geojson(min(months, GEOJSON_MAX_MONTHS), today)
        self.sink.write_document("sales_points", geojson, suffix=".geojson")
        logger.info("  ✓ Exported %d sales as GeoJSON", len(geojson["features"]))

        metadata = self.metadata()
        self.sink.write_document("metadata", metadata)
        logger.info("  ✓ Exported metadata")

        self.sink.close()
        return metadata

    def schema_info(self, today: date | None = None) -> dict[str, Any]:
        """Describe every table and view for the data explorer.

        Parameters
        ----------
        today : date | None
            Reference date for the monthly trend window.

        Returns
        -------
        dict[str, Any]
            ``tables`` (columns, row counts, sample rows), ``views``,
            ``statistics`` for property sales, ``columnValues`` for
            code-like columns and ``fullSampleData`` (latest sales with
            their legal descriptions and interest types).
        """
        tables = {
            table: {
                "columns": self.db.table_columns(table),
                "rowCount": self.db.count(table),
                "sampleRows": self._sample_rows(table, TABLE_SAMPLE_ROWS),
            }
            for table in SCHEMA_TABLES
        }

        views = {}
        for name, sql in view_definitions(self.db.dialect).items():
            rows = self._sample_rows(name, VIEW_SAMPLE_ROWS)
            views[name] = {
                "sql": sql,
                "columns": [{"name": column, "type": "derived"} for column in (rows[0] if rows else {})],
                "sampleRows": rows,
            }

        column_values = {}
        for column in PROFILED_COLUMNS:
            values = self._column_values(column)
            if values:
                column_values[column] = values

        return {
            "generated": datetime.now(timezone.utc).isoformat(),
            "backend": self.db.dialect,
            "tables": tables,
            "views": views,
            "statistics": {"propertySales": self._sales_statistics(today)},
            "columnValues": column_values,
            "fullSampleData": self._full_sample(),
        }

    def export_schema_info(self, today: date | None = None) -> dict[str, Any]:
        """Write ``schema_info.json``; returns the document."""
        info = self.schema_info(today)
        self.sink.write_document("schema_info", info)
        logger.info("  ✓ Exported schema for %d tables and %d views", len(info["tables"]), len(info["views"]))
        self.sink.close()
        return info

    def _sample_rows(self, relation: str, limit: int) -> list[dict[str, Any]]:
        return self.db.fetchall_dicts(f"SELECT * FROM {relation} LIMIT ?", (limit,))  # noqa: S608

    def _column_values(self, column: str) -> list[dict[str, Any]]:
        rows = self.db.fetchall(
            f"SELECT {column}, COUNT(*) AS value_count FROM property_sales "  # noqa: S608
            f"WHERE {column} IS NOT NULL GROUP BY {column} "
            f"ORDER BY value_count DESC, {column} LIMIT ?",
            (COLUMN_VALUES_LIMIT,),
        )
        return [{column: value, "count": count} for value, count in rows]

    def _sales_statistics(self, today: date | None) -> dict[str, Any]:
        square_metres = AreaUnit.SQUARE_METRES.value
        earliest, latest = self.db.fetchone(
            "SELECT MIN(contract_date), MAX(contract_date) FROM property_sales"
        )
        min_price, max_price, avg_price, avg_per_sqm = self.db.fetchone(
            "SELECT MIN(purchase_price), MAX(purchase_price), AVG(purchase_price), "
            "AVG(CASE WHEN area > 0 AND area_unit = ? THEN purchase_price / area END) "
            "FROM property_sales WHERE purchase_price > 0",
            (square_metres,),
        )
        min_area, max_area, avg_area = self.db.fetchone(
            "SELECT MIN(area), MAX(area), AVG(area) FROM property_sales "
            "WHERE area > 0 AND area_unit = ?",
            (square_metres,),
        )
        by_type = self.db.fetchall(
            "SELECT property_type, COUNT(*), AVG(purchase_price) FROM property_sales "
            "WHERE property_type IS NOT NULL AND purchase_price > 0 "
            "GROUP BY property_type ORDER BY 2 DESC, property_type"
        )
        by_zone = self.db.fetchall(
            "SELECT zone_code, zone_category, COUNT(*), AVG(purchase_price) FROM property_sales "
            "WHERE zone_code IS NOT NULL AND purchase_price > 0 "
            "GROUP BY zone_code, zone_category ORDER BY 3 DESC, zone_code"
        )
        top_suburbs = self.db.fetchall(
            "SELECT suburb, postcode, COUNT(*), AVG(purchase_price), "
            "MIN(purchase_price), MAX(purchase_price) FROM property_sales "
            "WHERE purchase_price > 0 GROUP BY suburb, postcode "
            "ORDER BY 3 DESC, suburb LIMIT ?",
            (STATS_TOP_SUBURBS_LIMIT,),
        )

        return {
            "totalRecords": self.db.count("property_sales"),
            "dateRange": {"earliest": _as_text(earliest), "latest": _as_text(latest)},
            "priceStats": {
                "minPrice": min_price,
                "maxPrice": max_price,
                "avgPrice": _round(avg_price),
                "avgPricePerSqm": _round(avg_per_sqm),
            },
            "areaStats": {"minArea": min_area, "maxArea": max_area, "avgArea": _round(avg_area, 1)},
            "byPropertyType": [
                {"propertyType": kind, "count": count, "avgPrice": _round(avg)}
                for kind, count, avg in by_type
            ],
            "byZoneCode": [
                {"zoneCode": zone, "zoneCategory": category, "count": count, "avgPrice": _round(avg)}
                for zone, category, count, avg in by_zone
            ],
            "topSuburbs": [
                {
                    "suburb": suburb,
                    "postcode": postcode,
                    "count": count,
                    "avgPrice": _round(avg),
                    "minPrice": low,
                    "maxPrice": high,
                }
                for suburb, postcode, count, avg, low, high in top_suburbs
            ],
            "monthlyTrends": self._monthly_trends(today),
        }

    def _monthly_trends(self, today: date | None) -> list[dict[str, Any]]:
        # Grouped here because month truncation differs between backends.
        cutoff = months_before(today or date.today(), TREND_MONTHS)
        months: dict[str, list[int]] = {}
        for contract_date, price in self.db.fetchall(
            "SELECT contract_date, purchase_price FROM property_sales "
            "WHERE contract_date >= ? AND purchase_price > 0",
            (cutoff.isoformat(),),
        ):
            months.setdefault(_as_text(contract_date)[:7], []).append(price)
        return [
            {"month": month, "count": len(prices), "avgPrice": _round(sum(prices) / len(prices))}
            for month, prices in sorted(months.items())
        ]

    def _full_sample(self) -> list[dict[str, Any]]:
        rows = self.db.fetchall_dicts(
            "SELECT ps.*, d.district_name FROM property_sales ps "
            "LEFT JOIN districts d ON ps.district_code = d.district_code "
            "ORDER BY ps.contract_date IS NULL, ps.contract_date DESC, ps.id DESC LIMIT ?",
            (FULL_SAMPLE_ROWS,),
        )
        if not rows:
            return []

        ids = [row["id"] for row in rows]
        marks = ", ".join("?" for _ in ids)
        legal = self._values_by_sale(
            f"SELECT sale_id, legal_description FROM legal_descriptions "  # noqa: S608
            f"WHERE sale_id IN ({marks}) AND legal_description IS NOT NULL ORDER BY id",
            ids,
        )
        interests = self._values_by_sale(
            f"SELECT sale_id, interest_type FROM sale_interests "  # noqa: S608
            f"WHERE sale_id IN ({marks}) ORDER BY id",
            ids,
        )
        for row in rows:
            row["legal_descriptions"] = ",".join(legal.get(row["id"], [])) or None
            row["interest_types"] = ",".join(interests.get(row["id"], [])) or None
        return rows

    def _values_by_sale(self, sql: str, ids: list[int]) -> dict[int, list[str]]:
        """Distinct values per sale id, in insertion order."""
        values: dict[int, list[str]] = {}
        for sale_id, value in self.db.fetchall(sql, ids):
            seen = values.setdefault(sale_id, [])
            if value not in seen:
                seen.append(value)
        return values
