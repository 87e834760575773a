"""
Standard type definitions for database models.

Provides consistent types for monetary, rate and JSON fields across all models.
"""

from sqlalchemy import DECIMAL, JSON
from sqlalchemy.dialects.postgresql import JSONB

# Standard money type for credits, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Percentage type for reward rates and conversion rates
# Precision: 7 digits total, 2 after decimal point
# Range: 0.00 to 99999.99
PercentType = DECIMAL(7, 2)

# JSON payloads: JSONB on PostgreSQL, generic JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")
