

SHUFFLE_WALLETS     = False                             # True | False - shuffle wallets before each cycle
RETRY               = 3                                 # attempts for every single wallet operation (claim, swap, mint)

RPCS                = [                                 # 0G Newton testnet RPCs, rotated on mempool/estimation errors
    "https://evmrpc-testnet.0g.ai",
    "https://16600.rpc.thirdweb.com",
]
ROTATE_RPC          = True                              # switch to the next RPC on mempool, estimation and rpc errors

CAPTCHA_API_KEY     = ''                                # scrappey.com api key to solve faucet hcaptcha

PRIVATEKEYS_PATH    = 'input_data/privatekeys.txt'
PROXIES_PATH        = 'input_data/proxies.txt'          # log:pass@ip:port, one per line. empty - no proxy
CONFIG_PATH         = 'input_data/config.json'          # overrides for operation settings (see modules/config.py)

SLEEP_BETWEEN_WALLETS = [5, 15]                         # pause between wallets, seconds
CYCLE_HOURS         = 25                                # pause between full cycles


# --- PERSONAL SETTINGS ---

TG_BOT_TOKEN        = ''                                # tg bot token (`12345:Abcde`) for reports. leave empty to disable
TG_USER_ID          = []                                # tg ids to send reports to.
                                                        # [21957123] - only to yourself
                                                        # [21957123, 103514123] - to several people
