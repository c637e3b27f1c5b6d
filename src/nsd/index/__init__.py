from nsd.index.chains import ChainSet, reconstruct_chains, walk_chain
from nsd.index.token_index import StreamKey, TokenIndex, build_token_index

__all__ = [
    "ChainSet",
    "StreamKey",
    "TokenIndex",
    "build_token_index",
    "reconstruct_chains",
    "walk_chain",
]
