from dataclasses import dataclass


@dataclass
class RagLog:
    session_id: str
    user_question: str
    standalone_question: str
    retrieved_context: str
    final_answer: str
