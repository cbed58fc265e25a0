# tools
from .utils import choose_mode, TgReport
from .config import BotConfig, load_config
from .retry import BackoffPolicy
from .proxies import ProxyPool
from .rpc_initializer import RPCPool
from .browser import Browser
from .wallet import Wallet

# modules
from .faucet import FaucetClaimer
from .deployer import ContractDeployer
from .storage import StorageUploader
from .token_swapper import TokenSwapper
from .minter import MintConfigurator
from .zerog import ZeroG
