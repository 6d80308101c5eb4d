import yaml
import os


class PromptManager:
    """
    Manages all prompt templates used by the client.
    Templates live in prompts.yaml next to this module so they can be reviewed
    and edited without touching code.
    """
    
    # Load prompts at class level
    _prompts_path = os.path.join(os.path.dirname(__file__), "prompts.yaml")
    with open(_prompts_path, "r", encoding="utf-8") as f:
        _prompts = yaml.safe_load(f)
    
    # --- Translation Prompts ---
    TRANSLATION = _prompts["translation"]["single"]
    BULK_TRANSLATION = _prompts["translation"]["bulk"]
    TRANSLATION_WITH_VALIDATION = _prompts["translation"]["with_validation"]
    
    # --- Summary Prompts ---
    SUMMARY = _prompts["summary"]["single"]
    SUMMARY_TRANSLATION = _prompts["summary"]["with_translation"]
    
    # --- Detection Prompts ---
    LANGUAGE_DETECTION = _prompts["detection"]["language"]
    
    # --- Optional Sections ---
    CONTEXT_SECTION = _prompts["sections"]["context"]
    GLOSSARY_SECTION = _prompts["sections"]["glossary"]
    HTML_SECTION = _prompts["sections"]["html"]
    
    # --- Style Instructions ---
    STYLES = {name: text for name, text in _prompts["styles"].items() if name != "custom"}
    CUSTOM_STYLE = _prompts["styles"]["custom"]
