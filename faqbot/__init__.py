"""faqbot: conversational question answering over a CSV knowledge source."""
