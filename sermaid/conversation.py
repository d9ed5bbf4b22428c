"""Question/answer history replayed as context for follow-up questions."""


class Conversation:
    """Ordered question/answer pairs from successful calls.

    Both lists grow together through record(); nothing else mutates them,
    so len(questions) == len(answers) holds between commands.
    """

    def __init__(self):
        self.questions: list[str] = []
        self.answers: list[str] = []

    def __len__(self) -> int:
        return len(self.questions)

    def record(self, question: str, answer: str) -> None:
        self.questions.append(question)
        self.answers.append(answer)

    def pairs(self) -> list[tuple[str, str]]:
        """Return a snapshot of (question, answer) pairs, oldest first."""
        return list(zip(self.questions, self.answers))
