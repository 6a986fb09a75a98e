"""
AI module for PIP Assist - answer guidance and form checking.
"""

from .bedrock_client import BedrockClient
from .prompt_builder import PromptBuilder, should_skip
from .response_parser import parse_guidance_response, error_response
from .guidance_scheduler import GuidanceScheduler
from .guidance_service import GuidanceService
from .form_checker import FormChecker, FORM_TYPES, export_improvements

__all__ = [
    'BedrockClient',
    'PromptBuilder',
    'should_skip',
    'parse_guidance_response',
    'error_response',
    'GuidanceScheduler',
    'GuidanceService',
    'FormChecker',
    'FORM_TYPES',
    'export_improvements',
]
