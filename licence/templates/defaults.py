"""Default licence template configurations."""

# Product key fields: tier, duration in months, seats.
PRODUCT_KEY_SIZES = (4, 4, 8)

TRIAL_TEMPLATE = {
    "tier": 1,
    "valid_days": 30,
    "features": ["basic"],
    "seats": 1,
}

STANDARD_TEMPLATE = {
    "tier": 2,
    "valid_days": 365,
    "features": ["basic", "export", "reports"],
    "seats": 5,
}

PROFESSIONAL_TEMPLATE = {
    "tier": 3,
    "valid_days": 365,
    "features": ["basic", "export", "reports", "api", "integrations"],
    "seats": 25,
}

ENTERPRISE_TEMPLATE = {
    "tier": 4,
    "valid_days": 3 * 365,
    "features": [
        "basic", "export", "reports", "api",
        "integrations", "sso", "audit", "custom_branding",
    ],
    "seats": 255,
}

TEMPLATES = {
    "trial": TRIAL_TEMPLATE,
    "standard": STANDARD_TEMPLATE,
    "professional": PROFESSIONAL_TEMPLATE,
    "enterprise": ENTERPRISE_TEMPLATE,
}
