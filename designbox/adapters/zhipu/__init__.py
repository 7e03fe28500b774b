"""
Zhipu Adapter - GLM chat completions and embeddings.
"""

from .client import ZhipuConfig, ZhipuProvider

__all__ = ["ZhipuConfig", "ZhipuProvider"]
