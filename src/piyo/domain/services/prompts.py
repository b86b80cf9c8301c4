"""Default prompt templates.

Templates use ``{{path}}`` placeholders filled by ``compose_context``.
Persona configuration can override both templates.
"""

SHOULD_RESPOND_TEMPLATE = """# About {{agentName}}:
{{bio}}

# RESPONSE EXAMPLES
{{user1}}: I just saw a really great movie
{{user2}}: Oh? Which movie?
Result: [IGNORE]

{{agentName}}: Oh, this is my favorite scene
{{user1}}: sick
{{user2}}: wait, why is it your favorite scene
Result: [RESPOND]

{{user1}}: stfu bot
Result: [STOP]

{{recentMessages}}

Thread of messages you are replying to:

{{formattedConversation}}

# INSTRUCTIONS: Choose the option that best describes {{agentName}}'s response to the last message. Ignore messages if they are addressed to someone else."""

# {{user1}}, {{user2}} in the examples are filled with random names
SHOULD_RESPOND_EXAMPLE_USERS = 2

SHOULD_RESPOND_INSTRUCTION = """
Based on the following context, determine if the bot should respond. Consider:
- Is the message directed at or relevant to the bot?
- Is it part of an ongoing conversation?
- Does it require a response?

Context:
{context}

Respond with exactly one word: either "RESPOND" or "IGNORE".
"""

MESSAGE_HANDLER_TEMPLATE = """# About {{agentName}}:
{{bio}}

# Conversation so far
{{recentMessages}}

# Message to reply to
{{senderName}}: {{messageText}}

# INSTRUCTIONS: Write the next message for {{agentName}} in reply to {{senderName}}. Stay in character, keep it conversational, and reply with the message text only."""
