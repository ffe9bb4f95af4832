"""
Global constants for the donor ledger.

Centralizes magic numbers used by the scoring, trend and LLM layers so
they can be tuned in one place.
"""

# Persistence keys (one JSON blob per collection)
PROJECTS_KEY = "projects"
PAYMENTS_KEY = "payments"
DEBITS_KEY = "debits"
STAFF_KEY = "staff"
CAMPAIGNS_KEY = "emergencyCampaigns"

STORE_KEYS = (PROJECTS_KEY, PAYMENTS_KEY, DEBITS_KEY, STAFF_KEY, CAMPAIGNS_KEY)

# Engagement scoring
# (max days since last donation, points) checked in order, 0 beyond the last
RECENCY_TIERS = (
    (30, 40),
    (90, 30),
    (180, 20),
    (365, 10),
)
MONETARY_WEIGHT = 30
FREQUENCY_WEIGHT = 30
MAX_ENGAGEMENT_SCORE = 100

# Trend windows
DAILY_WINDOW_DAYS = 30
WEEKLY_WINDOW_DAYS = 12 * 7
MONTHLY_WINDOW_YEARS = 1
WEEK_START_WEEKDAY = 6  # Sunday (date.weekday() numbering)

# Dashboard widgets
TOP_DONORS_LIMIT = 3
LIVE_FEED_WINDOW = 5

# Fraud assessment
FRAUD_TIMEOUT_SECONDS = 8.0
FRAUD_MAX_WORKERS = 16
FRAUD_UNAVAILABLE_REASON = "analysis unavailable"

# Content limits for broadcast copy
PUSH_NOTIFICATION_MAX_CHARS = 150
SMS_MAX_CHARS = 160

# Network
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60

ORGANIZATION_NAME = "Bairooha Foundation"
ORGANIZATION_ADDRESS = "123 Giving Lane, Hopeville, USA"
