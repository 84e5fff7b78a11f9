RAOB_CGI_URL = "http://www.esrl.noaa.gov/raobs/intl/GetRaobs.cgi"

# The station listing is the station picker of the RAOB query form, requested with the widest
# date range and every site so that every known station appears in the <SELECT> block.
RAOB_STATION_LIST_PARAMS = {
    "shour": "All Times",
    "ltype": "All Levels",
    "wunits": "Tenths of Meters/Second",
    "bdate": "1990010100",
    "edate": "2013122523",
    "access": "All Sites",
    "view": "YES",
    "osort": "Station Series Sort",
    "oformat": "FSL format (ASCII text)",
}

RAOB_SOUNDING_PARAMS = {
    "shour": "All Times",
    "ltype": "All Levels",
    "wunits": "Tenths of Meters/Second",
    "access": "WMO Station Identifier",
    "view": "NO",
    "osort": "Station Series Sort",
    "oformat": "FSL format (ASCII text)",
}

SERVICE_UNAVAILABLE_MARKER = "Service Temporarily Unavailable"

REQUEST_TIMEOUT = 60

# Raw sounding values with a magnitude above this are missing-data codes
MISSING_VALUE_THRESHOLD = 900

EXAMPLE_STATION_ID = "14735-72518"
