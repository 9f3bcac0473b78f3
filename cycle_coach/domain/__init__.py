"""Domain models and protocols.

- models: ChatMessage / ChatRequest / RelayRequest.
- conversation: Conversation and MessageRecord plus the ConversationStore protocol.
- profile: Profile, JournalEntry and the ContextProvider protocol.
- phases: Phase and LoveLanguage enums with their display data.
- exceptions: business error types.
"""
