"""Chain constants and default upstream endpoints."""

# SPL Token program (legacy)
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# Token-2022 (token extensions) program
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

# Wrapped SOL mint, used only as the price-lookup key for native SOL
SOL_MINT = "So11111111111111111111111111111111111111112"
SOL_SYMBOL = "SOL"
SOL_NAME = "Solana"

LAMPORTS_PER_SOL = 1_000_000_000

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_JUPITER_PRICE_URL = "https://lite-api.jup.ag/price/v3"
DEFAULT_TOKEN_LIST_URL = "https://lite-api.jup.ag/tokens/v2/tag?query=verified"
DEFAULT_BIRDEYE_BASE_URL = "https://public-api.birdeye.so"
DEFAULT_LOGO_TEMPLATE = (
    "https://raw.githubusercontent.com/solana-labs/token-list/main/"
    "assets/mainnet/{mint}/logo.png"
)

USER_AGENT = "SolanaWalletProxy/0.1.0"
