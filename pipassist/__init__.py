"""
PIP Assist
A multilingual wizard for filling UK government benefit and immigration forms.
"""

__version__ = "0.1.0"
__author__ = "PIP Assist Development Team"
__description__ = "AI-assisted questionnaire wizard for UK benefit forms"
