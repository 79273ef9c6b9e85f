"""Curated collaboration vocabulary.

Terms that signal a shared business focus between two entities, grouped by
area. Matching is a case-insensitive substring test, so short terms such as
"amm" or "data" also hit longer words that contain them.
"""

COLLABORATION_VOCABULARY = {
    "defi": [
        "defi", "lending", "borrowing", "liquidity", "yield",
        "staking", "trading", "exchange", "swap", "amm",
    ],
    "infrastructure": [
        "oracle", "bridge", "cross-chain", "infrastructure", "protocol", "network",
    ],
    "finance": [
        "payment", "settlement", "clearing", "custody", "asset", "tokenization",
    ],
    "enterprise": [
        "enterprise", "institutional", "compliance", "regulatory", "kyc", "aml",
    ],
    "data": [
        "data", "analytics", "reporting", "audit", "verification",
    ],
}

# Flattened in declaration order
COLLABORATION_KEYWORDS = [term for terms in COLLABORATION_VOCABULARY.values() for term in terms]

# Frequent long words that carry no signal
STOPWORDS = frozenset({
    "about", "their", "there", "these", "those", "which", "would", "could",
    "should", "other", "being", "where", "after", "before", "between", "through",
})
