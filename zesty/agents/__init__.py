"""
AI components for the Zesty backend.

1. Discomfort Mentor (single-shot Gemini prompts)
   - Explains discomfort recommendations, writes challenge tasks,
     onboarding reports and growth reflections
   - NOT an agent loop - uses the Google Gen AI SDK directly
   - Service layer: zesty/services/text_generation.py

Prompt templates are kept here so they can be reviewed and tested without
touching the service code.
"""
