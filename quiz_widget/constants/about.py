"""Static metadata describing the quiz widget."""

APP_NAME = "quiz-generator"
APP_TITLE = "Quiz Generator"
APP_VERSION = "1.0.0"

WIDGET_TEMPLATE_URI = "ui://widget/quiz-generator-template.html"
WIDGET_INVOKING_TEXT = "Loading quiz..."
WIDGET_INVOKED_TEXT = "Quiz loaded"
WIDGET_DESCRIPTION = "Generates a quiz based on the user's input"
