"""Chain endpoints, token contract and non-circulating account addresses."""

# --- endpoints ---
DEFAULT_ETHEREUM_RPC_URL = "https://eth.drpc.org"
DEFAULT_PHALA_RPC_URL = "https://phala-rpc.dwellir.com"
DEFAULT_KHALA_RPC_URL = "https://khala-rpc.dwellir.com"
DEFAULT_INDEXER_BASE_URL = "https://subsquid.phala.network"

# --- token ---
ETHEREUM_PHA_TOKEN = "0x6c5ba91642f10282b576d91922ae6448c9d52f4e"
ETHEREUM_PHA_DECIMALS = 18
SUBSTRATE_PHA_DECIMALS = 12
ETHEREUM_TOTAL_SUPPLY = "1000000000"

# --- Ethereum non-circulating accounts ---
ETHEREUM_REWARD_ADDRESS = "0x4731bc41b3cca4c2883b8ebb68cb546d5b3b4dd6"
ETHEREUM_PHALA_CHAINBRIDGE_ADDRESS = "0xcd38b15a419491c7c1238b0659f65c755792e257"
ETHEREUM_KHALA_CHAINBRIDGE_ADDRESS = "0xeec0fb4913119567cdfc0c5fc2bf8f9f9b226c2d"
ETHEREUM_SYGMA_BRIDGE_ADDRESS = "0xc832588193cd5ed2185dada4a531e0b26ec5b830"

# --- Substrate non-circulating accounts (same keys on Phala and Khala) ---
SUBSTRATE_CROWDLOAN_ADDRESS = "42fy3tTMPbgxbRqkQCyvLoSoPHwUPM3Dy5iqHYhF9RvD5XAP"
SUBSTRATE_REWARD_ADDRESS = "5EYCAe5iixJKLJE7D1zaaRxUiy2bL4KUKqZBSckPw3iWSyvk"
SUBSTRATE_CHAINBRIDGE_ADDRESS = "436H4jat7TobTbNX4RCH5p7qgErHbGTo1MyZhLVaSX4FkKyz"
SUBSTRATE_SYGMA_BRIDGE_ADDRESS = "436H4jatj6ntHTVm3wh9zs1Mqa8p1ykfcdkNH7txmjmohTu3"

# --- indexer ---
INDEXER_ROOT_FIELD = "circulationById"

SUBSTRATE_INDEXER_DOCUMENT = """
  {
    circulationById(id: "0") {
      circulation
      crowdloan
      reward
      sygmaBridge
      timestamp
      totalIssuance
    }
  }
"""

ETHEREUM_INDEXER_DOCUMENT = """
  {
    circulationById(id: "0") {
      circulation
      phalaChainBridge
      khalaChainBridge
      reward
      sygmaBridge
      timestamp
      totalSupply
    }
  }
"""

# --- cache keys ---
TOTAL_CIRCULATION_KEY = "totalCirculation"
LAST_UPDATE_KEY = "lastUpdate"
CIRCULATION_FIGURE = "circulation"

# --- refresh ---
DEFAULT_REFRESH_INTERVAL_SECONDS = 600
