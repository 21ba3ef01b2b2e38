"""excusemaster/llm — payload builders and chat-completion backends."""
