"""
EventForm CLI - Command-line interface for event form sessions.

Commands:
- config: Show and change the form configuration
- chains: List the chains the configured user administers
- create: Create an event through a form session
- edit: Edit an existing event through a form session
"""
