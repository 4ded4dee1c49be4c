"""Console collaborators: keyboard intents, prompts, and the text display."""
