"""Trivia prompts with numeric answers for the over/under mode."""

QUESTIONS = [
    {'question': 'How many U.S. presidents have there been?', 'answer': 46, 'category': 'History'},
    {'question': 'What year was the iPhone first released?', 'answer': 2007, 'category': 'Technology'},
    {'question': 'How many bones are in the adult human body?', 'answer': 206, 'category': 'Science'},
    {'question': 'How many countries are in the United Nations?', 'answer': 193, 'category': 'Geography'},
    {'question': 'What year did World War II end?', 'answer': 1945, 'category': 'History'},
    {'question': 'How many days are in a leap year?', 'answer': 366, 'category': 'General'},
    {'question': 'How many strings does a standard guitar have?', 'answer': 6, 'category': 'Music'},
    {'question': 'What is the boiling point of water in Fahrenheit?', 'answer': 212, 'category': 'Science'},
    {'question': 'How many chambers does a human heart have?', 'answer': 4, 'category': 'Science'},
    {'question': 'What year was Netflix founded?', 'answer': 1997, 'category': 'Technology'},
    {'question': 'How many planets are in our solar system?', 'answer': 8, 'category': 'Science'},
    {'question': 'How many sides does a hexagon have?', 'answer': 6, 'category': 'Math'},
    {'question': 'What year did the Berlin Wall fall?', 'answer': 1989, 'category': 'History'},
    {'question': 'How many minutes are in a full day?', 'answer': 1440, 'category': 'Math'},
    {'question': 'How many cards are in a standard deck?', 'answer': 52, 'category': 'General'},
    {'question': 'How many degrees are in a circle?', 'answer': 360, 'category': 'Math'},
    {'question': 'How many Great Lakes are there?', 'answer': 5, 'category': 'Geography'},
    {'question': 'What year was Google founded?', 'answer': 1998, 'category': 'Technology'},
    {'question': 'What is the highest possible score in ten-pin bowling?', 'answer': 300, 'category': 'Sports'},
    {'question': 'How many continents are there?', 'answer': 7, 'category': 'Geography'},
    {'question': 'What year did the Titanic sink?', 'answer': 1912, 'category': 'History'},
    {'question': 'How many keys are on a standard piano?', 'answer': 88, 'category': 'Music'},
    {'question': 'How many players are on a soccer team on the field?', 'answer': 11, 'category': 'Sports'},
    {'question': 'How many hours are in a week?', 'answer': 168, 'category': 'Math'},
]
