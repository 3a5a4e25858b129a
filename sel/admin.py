"""Django admin configuration for SEL models."""

from django.contrib import admin
from django.contrib.auth.models import User
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    AdminSetting,
    AssessmentAnswer,
    AssessmentQuestion,
    AssessmentResult,
    ChildProfile,
    ChildProgress,
    JournalEntry,
    ParentProfile,
    ProgressEvent,
    SelInsight,
)


class ParentProfileInline(admin.StackedInline):
    """Allows editing of the ParentProfile model on the same page as the User model."""
    model = ParentProfile
    can_delete = False
    verbose_name_plural = 'parent profile'


class UserAdmin(BaseUserAdmin):
    inlines = (ParentProfileInline,)


class ChildProgressInline(admin.StackedInline):
    model = ChildProgress
    can_delete = False
    readonly_fields = ('revision', 'updated_at')


class AssessmentAnswerInline(admin.TabularInline):
    model = AssessmentAnswer
    extra = 0


@admin.register(ChildProfile)
class ChildProfileAdmin(admin.ModelAdmin):
    list_display = ('nickname', 'parent', 'creation_status', 'assessments_enabled', 'created_at')
    list_filter = ('creation_status', 'assessments_enabled')
    search_fields = ('nickname', 'parent__user__username')
    inlines = (ChildProgressInline,)


@admin.register(ProgressEvent)
class ProgressEventAdmin(admin.ModelAdmin):
    list_display = ('child', 'kind', 'xp_earned', 'streak_count', 'occurred_at')
    list_filter = ('kind',)
    date_hierarchy = 'occurred_at'


@admin.register(AssessmentQuestion)
class AssessmentQuestionAdmin(admin.ModelAdmin):
    list_display = ('question_code', 'dimension', 'display_order', 'question_text')
    list_filter = ('dimension',)
    ordering = ('dimension', 'display_order')


@admin.register(AssessmentResult)
class AssessmentResultAdmin(admin.ModelAdmin):
    list_display = ('child', 'assessment_type', 'status', 'completion_date')
    list_filter = ('assessment_type', 'status')
    inlines = (AssessmentAnswerInline,)


@admin.register(AdminSetting)
class AdminSettingAdmin(admin.ModelAdmin):
    list_display = ('setting_key', 'setting_value', 'updated_at')


admin.site.unregister(User)
admin.site.register(User, UserAdmin)
admin.site.register(ChildProgress)
admin.site.register(JournalEntry)
admin.site.register(SelInsight)
