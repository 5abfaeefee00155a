"""Deterministic insight content.

These builders never call a model. They are what every insight endpoint
returns when no provider is configured, and what the Gemini generator falls
back to whenever the provider call or its JSON fails.
"""
from __future__ import annotations
import math
from typing import Any, Dict, Optional

DEFAULT_TASK_MINUTES = 60


def round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def task_breakdown(title: str, estimated_time: Optional[int]) -> Dict[str, Any]:
	base_time = estimated_time or DEFAULT_TASK_MINUTES
	return {
		"subtasks": [
			{
				"title": "Research and Planning",
				"description": f"Gather information and create a study plan for: {title}",
				"estimatedTime": max(15, math.floor(base_time * 0.25)),
				"learningObjectives": ["Understand requirements", "Create timeline", "Identify resources"],
				"resources": ["Online articles", "Course materials", "Documentation"],
				"successCriteria": "Complete research notes and timeline",
			},
			{
				"title": "Core Learning Phase",
				"description": f"Study the main concepts and theory for: {title}",
				"estimatedTime": max(30, math.floor(base_time * 0.5)),
				"learningObjectives": ["Master core concepts", "Understand theory", "Take detailed notes"],
				"resources": ["Textbooks", "Video tutorials", "Online courses"],
				"successCriteria": "Can explain key concepts clearly",
			},
			{
				"title": "Practice and Application",
				"description": f"Apply knowledge through exercises and practice for: {title}",
				"estimatedTime": max(15, math.floor(base_time * 0.25)),
				"learningObjectives": ["Apply concepts", "Practice skills", "Build confidence"],
				"resources": ["Practice exercises", "Projects", "Quizzes"],
				"successCriteria": "Complete all practice exercises successfully",
			},
		],
		"totalEstimatedTime": base_time,
		"studyTips": [
			"Take regular breaks every 25-30 minutes",
			"Practice active learning techniques",
			"Review progress regularly",
			"Ask questions when stuck",
			"Connect new knowledge to existing understanding",
		],
		"prerequisites": ["Basic understanding of the topic", "Access to learning materials"],
	}


def completion_rate(total_tasks: int, completed_tasks: int) -> float:
	return (completed_tasks / total_tasks) * 100 if total_tasks > 0 else 0.0


def overall_score(rate: float, average_progress: float) -> int:
	return min(95, max(50, round_half_up((rate + average_progress) / 2)))


def progress_trend(rate: float) -> str:
	if rate > 70:
		return "improving"
	if rate > 40:
		return "stable"
	return "needs attention"


def motivational_message(score: int) -> str:
	if score > 75:
		return "Excellent progress! You're doing great and staying on track."
	if score > 50:
		return "Good effort! Keep pushing forward and you'll see great results."
	return "Every expert was once a beginner. Keep learning and improving!"


def progress_summary(
	total_tasks: int,
	completed_tasks: int,
	average_progress: float,
	total_time_spent: int = 0,
) -> Dict[str, Any]:
	rate = completion_rate(total_tasks, completed_tasks)
	score = overall_score(rate, average_progress)
	return {
		"overallScore": score,
		"completionRate": rate,
		"progressTrend": progress_trend(rate),
		"strengths": [
			"Task completion" if completed_tasks > 0 else "Getting started",
			"Time tracking" if total_time_spent > 0 else "Learning engagement",
			"Consistent effort",
		],
		"areasForImprovement": [
			"Task completion rate" if rate < 50 else "Study efficiency",
			"Time management",
			"Goal setting",
		],
		"recommendations": [
			{
				"category": "Study Habits",
				"suggestion": (
					"Focus on completing smaller tasks to build momentum"
					if rate < 50
					else "Continue with current learning pace and set more challenging goals"
				),
				"priority": "high",
			},
			{
				"category": "Time Management",
				"suggestion": "Use the Pomodoro technique for better focus and productivity",
				"priority": "medium",
			},
		],
		"motivationalMessage": motivational_message(score),
		"nextSteps": [
			"Review completed tasks and celebrate achievements",
			"Set specific goals for the upcoming week",
			"Identify areas that need more focus",
		],
	}


def recommended_daily_hours(active_tasks: int) -> float:
	if active_tasks > 5:
		return 3
	if active_tasks > 2:
		return 2
	return 1.5


_TECHNIQUES = [
	{
		"name": "Active Learning",
		"description": "Engage with material through practice, discussion, and application",
		"bestFor": "Skill development and deep understanding",
	},
	{
		"name": "Spaced Repetition",
		"description": "Review material at increasing intervals to improve retention",
		"bestFor": "Memory retention and long-term learning",
	},
	{
		"name": "Pomodoro Technique",
		"description": "Work in focused 25-minute intervals with 5-minute breaks",
		"bestFor": "Time management and maintaining focus",
	},
]

_ADVANCED_TECHNIQUE = {
	"name": "Feynman Technique",
	"description": "Explain concepts in simple terms as if teaching someone else",
	"bestFor": "Complex topics and deep understanding",
}


def study_suggestions(role: str, active_tasks: int, has_advanced_tasks: bool) -> Dict[str, Any]:
	techniques = [dict(t) for t in _TECHNIQUES]
	if has_advanced_tasks:
		techniques.append(dict(_ADVANCED_TECHNIQUE))
	return {
		"studySchedule": {
			"recommendedDailyHours": recommended_daily_hours(active_tasks),
			"bestStudyTimes": ["morning", "afternoon"] if role == "STUDENT" else ["evening", "weekend"],
			"breakIntervals": 30 if has_advanced_tasks else 25,
		},
		"techniques": techniques,
		"resources": [
			{
				"type": "article",
				"title": "Effective Study Techniques for Better Learning",
				"url": "",
				"relevance": "Provides evidence-based study methods",
			},
			{
				"type": "video",
				"title": "Learning How to Learn - Coursera Course",
				"url": "",
				"relevance": "Understanding how your brain learns and retains information",
			},
			{
				"type": "book",
				"title": "Make It Stick: The Science of Successful Learning",
				"url": "",
				"relevance": "Research-backed strategies for effective learning",
			},
		],
		"timeManagementTips": [
			"Use the Pomodoro Technique for focused study sessions",
			"Set specific, measurable learning goals for each session",
			"Track your progress regularly to stay motivated",
			"Take regular breaks to maintain focus and prevent burnout",
			"Create a dedicated, distraction-free study environment",
			"Plan your most challenging tasks for when you have the most energy",
			"Use a calendar to schedule study sessions and stick to them",
		],
	}
