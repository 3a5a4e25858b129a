"""Forms used by the SEL application.

The assessment form is built dynamically from the question bank, with one
required five-point choice per question.  The journal and parent forms
validate the small JSON payloads posted by the app before they reach the
services.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from django import forms

from .models import JOURNAL_SECTIONS, AssessmentQuestion
from .services.scoring import Answer

LIKERT_CHOICES = [
    ('5', 'Strongly Agree'),
    ('4', 'Agree'),
    ('3', 'Sometimes'),
    ('2', 'Disagree'),
    ('1', 'Strongly Disagree'),
]


class AssessmentSubmissionForm(forms.Form):
    """Collects one Likert answer for every question in the bank."""

    field_prefix = 'q_'

    def __init__(self, *args, questions: Sequence[AssessmentQuestion] = (), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.questions = list(questions)
        for question in self.questions:
            self.fields[self.field_name(question.question_code)] = forms.ChoiceField(
                label=question.question_text,
                choices=LIKERT_CHOICES,
                widget=forms.RadioSelect,
                error_messages={'required': 'Please answer every question.'},
            )

    @classmethod
    def field_name(cls, question_code: str) -> str:
        return f'{cls.field_prefix}{question_code}'

    @classmethod
    def data_from_answers(cls, answers) -> Dict[str, str]:
        """Map answer payloads onto form field names.

        ``answers`` is either ``{question_code: value}`` or a list of
        ``{"question_code": ..., "answer_value": ...}`` objects, with the
        camelCase key spellings accepted as well.  Any other shape maps to no
        answers, which the form then reports as missing.
        """

        if isinstance(answers, dict):
            items = answers.items()
        elif isinstance(answers, (list, tuple)):
            items = (
                (
                    item.get('question_code', item.get('questionCode')),
                    item.get('answer_value', item.get('answerValue')),
                )
                for item in answers
                if isinstance(item, dict)
            )
        else:
            items = ()
        return {
            cls.field_name(str(code)): str(value)
            for code, value in items
            if code is not None and value is not None
        }

    def clean(self) -> Dict[str, Any]:  # type: ignore[override]
        cleaned_data = super().clean()
        if not self.questions:
            raise forms.ValidationError('No assessment questions are configured.')
        return cleaned_data

    def answers(self) -> List[Answer]:
        return [
            Answer(
                question_code=question.question_code,
                answer_value=int(self.cleaned_data[self.field_name(question.question_code)]),
            )
            for question in self.questions
        ]


class JournalEntryForm(forms.Form):
    """Free text plus the guided prompts; at least one of them is required."""

    section_aliases = {
        'wentWell': 'went_well',
        'wentBadly': 'went_badly',
        'tomorrowPlan': 'tomorrow_plan',
    }

    content = forms.CharField(label='Journal entry', max_length=5000, required=False, strip=True,
                              widget=forms.Textarea(attrs={
                                  'class': 'form-control',
                                  'rows': 6,
                                  'placeholder': 'How was your day?',
                              }))
    went_well = forms.CharField(label='What went well', max_length=2000, required=False, strip=True)
    went_badly = forms.CharField(label='What went badly', max_length=2000, required=False, strip=True)
    gratitude = forms.CharField(label='Gratitude', max_length=2000, required=False, strip=True)
    challenge = forms.CharField(label='Challenge', max_length=2000, required=False, strip=True)
    tomorrow_plan = forms.CharField(label="Tomorrow's plan", max_length=2000, required=False, strip=True)

    def __init__(self, data=None, *args, **kwargs) -> None:
        if data is not None:
            data = dict(data)
            for alias, name in self.section_aliases.items():
                if alias in data and name not in data:
                    data[name] = data.pop(alias)
        super().__init__(data, *args, **kwargs)

    def clean(self) -> Dict[str, Any]:
        cleaned_data = super().clean()
        if not any(cleaned_data.get(name) for name in ['content', *self.section_names()]):
            raise forms.ValidationError('Write something in at least one part of the journal.')
        return cleaned_data

    @staticmethod
    def section_names() -> List[str]:
        return [name for name, _ in JOURNAL_SECTIONS]

    def sections(self) -> Dict[str, str]:
        return {name: self.cleaned_data.get(name) or '' for name in self.section_names()}


class ParentInfoForm(forms.Form):
    full_name = forms.CharField(label='Full Name', max_length=255, required=False, widget=forms.TextInput(attrs={
        'class': 'form-control',
        'placeholder': 'Jane Doe',
    }))
    phone = forms.CharField(label='Phone', max_length=20, required=False, widget=forms.TextInput(attrs={
        'class': 'form-control',
    }))
