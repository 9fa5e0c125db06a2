"""Read-only interface of the Troves vault contracts (Cairo 1 ABI)."""

U256 = "core::integer::u256"
CONTRACT_ADDRESS = "core::starknet::contract_address::ContractAddress"
SETTINGS_STRUCT = "strkfarm::strategies::vesu_rebalance::interface::Settings"
POOL_PROPS_STRUCT = "strkfarm::strategies::vesu_rebalance::interface::PoolProps"


def _view(name, inputs=None, output=U256):
    return {
        "type": "function",
        "name": name,
        "inputs": inputs or [],
        "outputs": [{"type": output}],
        "state_mutability": "view",
    }


TROVES_ABI = [
    {
        "type": "struct",
        "name": U256,
        "members": [
            {"name": "low", "type": "core::integer::u128"},
            {"name": "high", "type": "core::integer::u128"},
        ],
    },
    {
        "type": "struct",
        "name": SETTINGS_STRUCT,
        "members": [
            {"name": "default_pool_index", "type": "core::integer::u8"},
            {"name": "fee_bps", "type": "core::integer::u32"},
            {"name": "fee_receiver", "type": CONTRACT_ADDRESS},
        ],
    },
    {
        "type": "struct",
        "name": POOL_PROPS_STRUCT,
        "members": [
            {"name": "pool_id", "type": "core::felt252"},
            {"name": "max_weight", "type": "core::integer::u32"},
            {"name": "v_token", "type": CONTRACT_ADDRESS},
        ],
    },
    _view("total_assets"),
    _view("total_supply"),
    _view("asset", output=CONTRACT_ADDRESS),
    _view("get_settings", output=SETTINGS_STRUCT),
    _view("get_allowed_pools", output=f"core::array::Array::<{POOL_PROPS_STRUCT}>"),
    _view("get_previous_index", output="core::integer::u128"),
    _view("compute_yield", output=f"({U256}, {U256})"),
    _view("balance_of", inputs=[{"name": "account", "type": CONTRACT_ADDRESS}]),
    _view("convert_to_shares", inputs=[{"name": "assets", "type": U256}]),
    _view("convert_to_assets", inputs=[{"name": "shares", "type": U256}]),
    _view("preview_deposit", inputs=[{"name": "assets", "type": U256}]),
    _view("preview_withdraw", inputs=[{"name": "assets", "type": U256}]),
]
