"""
Loop Hospital Network Assistant - Core Application Package

This package contains the core functionality for the hospital network assistant including:
- Configuration management
- Hospital directory loading and lexical matching
- Query interpretation with Gemini and a rule-based fallback
- Dialogue replies shared by the web and voice channels
- Call session tracking
- API and Twilio webhook endpoints
"""

__version__ = "1.0.0"
__author__ = "Loop Health Engineering"
