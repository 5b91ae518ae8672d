SECONDS_IN_AN_HOUR = 60 * 60
SECONDS_IN_A_DAY = 24 * SECONDS_IN_AN_HOUR

# Fixed point
PRECISION = 10 ** 18
FEED_DECIMALS = 8
ADDITIONAL_FEED_PRECISION = 10 ** (18 - FEED_DECIMALS)

# A threshold of 50 means collateral must be worth twice the debt (200%)
LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100
LIQUIDATION_BONUS = 10

MIN_HEALTH_FACTOR = PRECISION
MAX_HEALTH_FACTOR = 2 ** 256 - 1

# Price readings older than this are rejected
TIMEOUT = 3 * SECONDS_IN_AN_HOUR

NULL_ACCOUNT = "0x0000000000000000000000000000000000000000"
ENGINE_ACCOUNT = "mithril-engine"

DB_URL = "sqlite:///quotes.db"
VS_CURRENCY = "usd"
