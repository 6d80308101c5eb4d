"""Cross-cutting error types and logging shared by the llm-translate packages."""
