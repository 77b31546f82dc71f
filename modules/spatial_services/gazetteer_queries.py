"""SQL statements issued against the G-NAF gazetteer.

Statements use asyncpg positional ``$n`` placeholders. Points are built as
``ST_MakePoint(longitude, latitude)`` so every statement takes latitude as
``$1`` and longitude as ``$2``. Distances are measured in Web Mercator
(EPSG:3857) for index-assisted radius filtering; the services recompute exact
great-circle distances from the returned coordinates.
"""

_FORMATTED_ADDRESS = """
    CONCAT(COALESCE(a.number_first, ''), ' ', COALESCE(s.street_name, ''), ' ',
           COALESCE(NULLIF(s.street_type, ''), ''),
           CASE WHEN NULLIF(s.street_type, '') IS NOT NULL THEN ', ' ELSE ' ' END,
           COALESCE(l.locality_name, ''),
           CASE WHEN COALESCE(l.state_code, '') != '' THEN ' ' || l.state_code ELSE '' END,
           CASE WHEN COALESCE(l.postcode, '') != '' THEN ' ' || l.postcode ELSE '' END)
"""

_ADDRESS_COLUMNS = """
    a.address_detail_pid,
    a.gnaf_pid,
    a.latitude,
    a.longitude,
    a.coordinate_precision,
    a.coordinate_reliability,
    a.number_first AS street_number,
    s.street_name,
    s.street_type,
    l.locality_name,
    l.state_code,
    l.postcode
"""

_ADDRESS_JOINS = """
    FROM gnaf.addresses a
    LEFT JOIN gnaf.localities l ON a.locality_pid = l.locality_pid
    LEFT JOIN gnaf.streets s ON a.street_locality_pid = s.street_locality_pid
"""

_QUERY_POINT = "ST_SetSRID(ST_MakePoint($2, $1), 4326)"

_CONSTRUCTED_ADDRESS = "LOWER(CONCAT(a.number_first, ' ', s.street_name, ' ', l.locality_name))"

# Scores as in geocoding.address_matching.MATCH_RULES.
_MATCH_TIER = f"""
        CASE
            WHEN LOWER(a.number_first) = LOWER($2)
                 AND LOWER(s.street_name) = LOWER($3)
                 AND LOWER(l.locality_name) LIKE '%' || LOWER($4) || '%' THEN 95
            WHEN LOWER(a.number_first) = LOWER($2)
                 AND LOWER(s.street_name) LIKE '%' || LOWER($3) || '%' THEN 85
            WHEN {_CONSTRUCTED_ADDRESS} LIKE '%' || LOWER($1) || '%' THEN 75
            ELSE 50
        END"""


# $1 full address, $2 street number, $3 street name token, $4 locality token, $5 row limit
ADDRESS_CANDIDATES_QUERY = f"""
    SELECT
        {_ADDRESS_COLUMNS},
        {_FORMATTED_ADDRESS} AS formatted_address
    {_ADDRESS_JOINS}
    WHERE a.address_status = 'CURRENT'
      AND a.number_first IS NOT NULL
      AND s.street_name IS NOT NULL
      AND l.locality_name IS NOT NULL
      AND (
        (LOWER(a.number_first) = LOWER($2) AND LOWER(s.street_name) LIKE '%' || LOWER($3) || '%')
        OR {_CONSTRUCTED_ADDRESS} LIKE '%' || LOWER($1) || '%'
      )
    ORDER BY
        {_MATCH_TIER} DESC,
        a.coordinate_reliability ASC
    LIMIT $5
"""

# $1 latitude, $2 longitude, $3 radius meters, $4 row limit
REVERSE_GEOCODE_QUERY = f"""
    SELECT
        {_ADDRESS_COLUMNS},
        COALESCE(a.formatted_address, {_FORMATTED_ADDRESS}) AS formatted_address,
        ST_Distance(
            ST_Transform(a.geometry, 3857),
            ST_Transform({_QUERY_POINT}, 3857)
        ) AS distance_meters
    {_ADDRESS_JOINS}
    WHERE a.address_status = 'CURRENT'
      AND ST_DWithin(
            ST_Transform(a.geometry, 3857),
            ST_Transform({_QUERY_POINT}, 3857),
            $3
      )
    ORDER BY distance_meters ASC, a.coordinate_reliability ASC
    LIMIT $4
"""

# $1 latitude, $2 longitude, $3 radius meters, $4 row limit, $5 address types or NULL
PROXIMITY_QUERY = f"""
    SELECT
        a.gnaf_pid,
        a.formatted_address,
        a.latitude,
        a.longitude,
        a.coordinate_reliability,
        ROUND(ST_Distance(
            ST_Transform(a.geometry, 3857),
            ST_Transform({_QUERY_POINT}, 3857)
        )::numeric) AS distance_meters
    FROM gnaf.addresses a
    WHERE ST_DWithin(
            ST_Transform(a.geometry, 3857),
            ST_Transform({_QUERY_POINT}, 3857),
            $3
      )
      AND ($5::text[] IS NULL OR a.address_type = ANY($5::text[]))
    ORDER BY distance_meters ASC, a.coordinate_reliability ASC
    LIMIT $4
"""

# $1 latitude, $2 longitude
BOUNDARY_QUERY = f"""
    SELECT
        l.locality_name,
        l.locality_pid,
        l.postcode,
        l.state_code,
        l.local_government_area
    FROM gnaf.localities l
    WHERE ST_Contains(l.geometry, {_QUERY_POINT})
    LIMIT 1
"""

# $1 latitude, $2 longitude, $3 tolerance meters
STATISTICAL_AREA_QUERY = f"""
    SELECT
        s.mesh_block_code,
        s.statistical_area_1,
        s.statistical_area_2,
        a.locality_pid,
        ST_Distance(a.geometry::geography, {_QUERY_POINT}::geography) AS distance_meters
    FROM gnaf.addresses a
    JOIN gnaf.streets s ON a.street_pid = s.street_pid
    WHERE ST_DWithin(a.geometry::geography, {_QUERY_POINT}::geography, $3)
    ORDER BY ST_Distance(a.geometry::geography, {_QUERY_POINT}::geography)
    LIMIT 1
"""

ADDRESS_TABLE_HEALTH_QUERY = """
    SELECT COUNT(*) AS address_count
    FROM (SELECT 1 FROM gnaf.addresses LIMIT 1) sample
"""

POSTGIS_EXTENSION_QUERY = """
    SELECT EXISTS(
        SELECT 1 FROM pg_extension WHERE extname = 'postgis'
    ) AS postgis_available
"""

SPATIAL_INDEX_QUERY = """
    SELECT indexname
    FROM pg_indexes
    WHERE indexdef ILIKE '%gist%'
      AND schemaname = 'gnaf'
      AND tablename = 'addresses'
    LIMIT 1
"""
