"""
growthai - Explainable ad-spend recommendations.

Upload campaign exports, review confidence-scored recommendations,
simulate their impact and track how useful they turn out to be.
"""

from growthai.client import GatewayClient
from growthai.config import GrowthAIConfig, load_config
from growthai.workflow import Step, WorkflowStateMachine

__version__ = "0.1.0"
__all__ = ["GatewayClient", "GrowthAIConfig", "Step", "WorkflowStateMachine", "load_config", "__version__"]
