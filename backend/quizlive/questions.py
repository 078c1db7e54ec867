"""Static question bank shared read-only by every room."""

from typing import NamedTuple, Tuple


class Question(NamedTuple):
    question: str
    alternatives: Tuple[str, ...]
    correct: int

    def to_dict(self):
        return {
            'question': self.question,
            'alternatives': list(self.alternatives),
            'correct': self.correct,
        }


QUESTION_BANK: Tuple[Question, ...] = (
    Question(
        "What does HTML stand for?",
        ("Hyper Text Markup Language", "Home Tool Markup Language",
         "Hyperlinks and Text Markup Language", "Hyper Tool Multi Language"),
        0,
    ),
    Question(
        "Which CSS property is used to change the text color?",
        ("text-color", "font-color", "color", "text-style"),
        2,
    ),
    Question(
        "What does CSS stand for?",
        ("Creative Style Sheets", "Cascading Style Sheets", "Computer Style Sheets", "Colorful Style Sheets"),
        1,
    ),
    Question(
        "Which HTML tag is used to create a hyperlink?",
        ("<link>", "<a>", "<href>", "<url>"),
        1,
    ),
    Question(
        "What is the correct way to write a JavaScript array?",
        ("var colors = 'red', 'green', 'blue'",
         "var colors = (1:'red', 2:'green', 3:'blue')",
         "var colors = ['red', 'green', 'blue']",
         "var colors = 1 = ('red'), 2 = ('green'), 3 = ('blue')"),
        2,
    ),
    Question(
        "Which event occurs when the user clicks on an HTML element?",
        ("onchange", "onclick", "onmouseclick", "onmouseover"),
        1,
    ),
    Question(
        "What does DOM stand for?",
        ("Document Object Model", "Display Object Management", "Dynamic Object Model", "Document Oriented Model"),
        0,
    ),
    Question(
        "Which method is used to add an element at the end of an array?",
        ("push()", "add()", "append()", "insert()"),
        0,
    ),
    Question(
        "What is the correct way to write a CSS comment?",
        ("// this is a comment", "/* this is a comment */", "<!-- this is a comment -->", "* this is a comment *"),
        1,
    ),
    Question(
        "Which HTML attribute specifies an alternate text for an image?",
        ("title", "src", "alt", "longdesc"),
        2,
    ),
)
