"""
DesignBox - Conversational retrieval over a curated catalog of design resources.

Example:
    >>> from designbox.bootstrap import build_services
    >>> services = await build_services(get_settings())
    >>> response = await services.engine.respond("推荐免费的配色工具")
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
