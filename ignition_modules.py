"""Deployment modules for the IP market contracts."""

from contract_ignition import ModuleRegistry

# Contracts already live on the target chains
STORY_HELPER = "0x7cb1D6f46cb3E99D7BAf7bF9f7FA8Eb88313D8e2"
DEFAULT_PRICE_MODEL = "0x61DDfb3713638b56aF49AfdD9a5831b07c24B458"
SINGLE_PRICE_MODEL = "0xFf4D96E62E14633C112913BA02E41e0EEB880c1C"

registry = ModuleRegistry()


@registry.module("StoryHelper")
def story_helper(m):
    sh = m.contract("StoryHelper")
    return {"sh": sh}


@registry.module("DefaultPriceModel")
def default_price_model(m):
    dp = m.contract("DefaultPriceModel")
    return {"dp": dp}


@registry.module("PriceModelSingle")
def price_model_single(m):
    dp = m.contract("PriceModelSingle")
    return {"dp": dp}


@registry.module("MarketCore")
def market_core(m):
    market = m.contract("MarketCore")
    return {"market": market}


@registry.module("IPMarket")
def ip_market(m):
    market = m.contract("IPMarket", [STORY_HELPER, DEFAULT_PRICE_MODEL])
    return {"market": market}


@registry.module("DolphinIPMarket")
def dolphin_ip_market(m):
    market = m.contract("DolphinIPMarket", [STORY_HELPER, SINGLE_PRICE_MODEL])
    return {"market": market}


@registry.module("RemixingNFT")
def remixing_nft(m):
    nft = m.contract("RemixingNFT")
    return {"nft": nft}


# Fresh deployment of the market together with its collaborators
@registry.module("IPMarketStack")
def ip_market_stack(m):
    sh = m.use_module("StoryHelper")["sh"]
    dp = m.use_module("DefaultPriceModel")["dp"]
    market = m.contract("IPMarket", [sh, dp])
    return {"market": market}
