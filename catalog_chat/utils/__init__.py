"""
Utility modules for the chat backend
"""
from .config_loader import ChatConfig, load_chat_config

__all__ = [
    'ChatConfig',
    'load_chat_config',
]
