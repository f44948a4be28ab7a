"""
texts.py - Interpretation texts for the text render mode
"""

from typing import Dict

NOTE = (
    "Note: personalized comparisons and detailed advice require expert "
    "review of the underlying data."
)


def poincare_text() -> str:
    return (
        "Poincaré Plot Interpretation\n\n"
        "The Poincaré plot maps each RR interval (RRn) against the next one "
        "(RRn+1). The spread across the line of identity (SD1) reflects "
        "short-term, mostly parasympathetic variability; the spread along it "
        "(SD2) reflects long-term variability.\n\n"
        "Common patterns:\n"
        "- Dense, rounded cloud: healthy, high HRV.\n"
        "- Elongated, narrow cloud: reduced HRV, often seen under stress.\n"
        "- Scattered, irregular points: possible arrhythmias or ectopic beats."
    )


def histogram_text(label: str) -> str:
    return (
        f"{label} Histogram Interpretation\n\n"
        f"The histogram shows how often each range of {label.lower()} values "
        "occurs. Bins are equal-width, ceil(sqrt(n)) of them between the "
        "smallest and largest value.\n\n"
        "Typical shapes:\n"
        "- Symmetric, bell-shaped: stable heart rhythm.\n"
        "- Skewed or multi-modal: exercise, stress, sleep stages or arrhythmias.\n"
        "- Narrow: low variability.\n"
        "- Wide: high variability, a sign of adaptability."
    )


def time_series_text(label: str) -> str:
    return (
        f"{label} Time Series Interpretation\n\n"
        f"The time series shows {label.lower()} values in recording order, "
        "revealing trends and sudden changes.\n\n"
        "What to look for:\n"
        f"- Overall trend: is the {label.lower()} rising, falling or stable?\n"
        "- Variability: fluctuation around the mean; higher is generally better.\n"
        "- Outliers: spikes or drops may be artifacts or ectopic beats.\n"
        "- Rhythmic patterns: recurring cycles such as breathing or activity."
    )


def successive_diff_text() -> str:
    return (
        "Successive Differences Histogram Interpretation\n\n"
        "The histogram shows the signed differences between consecutive RR "
        "intervals (RRn+1 - RRn) and is a direct view of short-term HRV.\n\n"
        "Key insights:\n"
        "- A tall peak near zero: many small beat-to-beat changes.\n"
        "- A wide spread: greater short-term variability, usually higher vagal tone.\n"
        "- Far-out values: possible artifacts or abrupt heart rate changes.\n\n"
        "RMSSD is derived from these same differences."
    )


def general_summary_text() -> str:
    return (
        "General Summary Statistics Interpretation\n\n"
        "- Count: number of valid intervals analysed.\n"
        "- Min / Max RR: shortest and longest interval.\n"
        "- Mean / Median RR: central tendency; the median is less sensitive to outliers.\n"
        "- RMSSD: primary short-term HRV measure, reflects vagal tone.\n"
        "- SDNN: overall HRV (sample standard deviation of intervals).\n"
        "- NN50 / pNN50: count and percentage of successive differences above 50 ms.\n"
        "- SDSD: standard deviation of successive differences.\n"
        "- Average HR: 60000 / mean RR, in beats per minute."
    )


def raw_data_text() -> str:
    return (
        "Raw RR Interval Data\n\n"
        "Every interval that is currently included, in milliseconds, with its "
        "timestamp. All metrics and plots are derived from this list.\n\n"
        "Usage:\n"
        "- Data integrity check: look for physiologically impossible values.\n"
        "- Temporal analysis: follow how intervals change during the recording.\n"
        "- Manual review and custom analyses outside this tool."
    )


# title, description, strengths, weaknesses, comparisons, advice
_INTERPRETATIONS: Dict[str, tuple] = {
    "user_profile_interpretation": (
        "User Profile & Biometrics Interpretation",
        "Fundamental biometric data and personal settings used to tailor training and nutrition.",
        "Well-documented biometrics allow precise goal setting.",
        "Outdated biometric data leads to suboptimal recommendations.",
        "Compare against personal history to track changes over time.",
        "Update biometric data regularly.",
    ),
    "training_interpretation": (
        "Training Sessions Interpretation",
        "Recent training sessions, highlighting consistency, intensity and performance trends.",
        "Consistent training with progressive overload indicates good adaptation.",
        "Irregular attendance or lack of progression hinders progress.",
        "Compare volume and intensity week over week and against the plan.",
        "Adjust volume, intensity or recovery if performance stagnates.",
    ),
    "sleep_interpretation": (
        "Sleep Patterns Interpretation",
        "Sleep duration and quality, key indicators of recovery.",
        "Adequate, high quality sleep supports recovery and cognition.",
        "Chronic sleep deprivation impairs recovery and raises injury risk.",
        "Compare against the 7-9 hours adult guideline and personal baseline.",
        "Keep a consistent sleep schedule and a dark, quiet room.",
    ),
    "nutrition_interpretation": (
        "Nutrition Programs Interpretation",
        "Assigned nutrition programs and their status.",
        "Adherence to a balanced plan accelerates progress.",
        "Poor adherence impedes recovery and energy levels.",
        "Compare intake with training energy expenditure.",
        "Seek support from a nutritionist when adherence is difficult.",
    ),
    "tests_interpretation": (
        "Test Results Interpretation",
        "Performance and physiological test results.",
        "Improving scores demonstrate effective training.",
        "Stagnant results may call for program adjustments.",
        "Compare against previous tests and age/gender norms.",
        "Use results to set specific, measurable goals.",
    ),
    "logs_interpretation": (
        "Recent Activity Logs Interpretation",
        "Recent interactions and events recorded for the user.",
        "Detailed logs give clear history for coaching.",
        "Incomplete logs lead to missed support opportunities.",
        "Review log frequency to understand engagement.",
        "Document all interactions consistently.",
    ),
    "progress_interpretation": (
        "Member Progress Interpretation",
        "Key progress indicators tracked over time.",
        "Consistent positive trends indicate effective training.",
        "Plateaus require re-evaluating training or recovery.",
        "Compare against baselines and personal goals.",
        "Re-evaluate training, nutrition and recovery when progress stalls.",
    ),
    "custom_measurements_interpretation": (
        "Custom Measurements Interpretation",
        "Custom measurements recorded for the user.",
        "Metrics can be tailored to individual goals.",
        "Interpretation depends on the purpose of each measurement.",
        "Compare measurements over time to see responses to interventions.",
        "Record custom measurements consistently.",
    ),
    "training_schedules_interpretation": (
        "Training Schedules Interpretation",
        "Planned training days, weeks, blocks and configured sessions.",
        "A structured, followed schedule promotes consistent progress.",
        "An overly rigid schedule can lead to burnout.",
        "Compare planned against actual training load.",
        "Follow the schedule but stay flexible for recovery.",
    ),
    "lessons_interpretation": (
        "Lessons Overview Interpretation",
        "Lessons attended by the user.",
        "Consistent attendance indicates engagement.",
        "Infrequent attendance may indicate scheduling conflicts.",
        "Track attendance rates over time.",
        "Give feedback on lesson content.",
    ),
    "gym_sections_interpretation": (
        "Gym Sections Overview Interpretation",
        "Gym sections with capacity and current occupancy.",
        "Usage data helps plan training times.",
        "High occupancy at peak times affects workout quality.",
        "Compare occupancy across times of day.",
        "Train at less busy times where possible.",
    ),
    "comprehensive_user_report": (
        "Comprehensive User Report Overview",
        "Combines profile, training, sleep, nutrition and other data into one view of the user.",
        "Reveals trends and correlations that single reports miss.",
        "Correlations must not be read as causal links.",
        "Compare sections against the user's own history.",
        "Focus on areas where several metrics point the same way.",
    ),
    "all_user_settings_text": (
        "All User Settings Report",
        "All user profiles and their settings, for administrative overview.",
        "Central view of all user configurations.",
        "Contains personal data that requires access control.",
        "Identify common settings and demographic distributions.",
        "Keep user settings accurate and complete.",
    ),
    "all_members_text": (
        "All Members Report",
        "All registered members with contact details and membership status.",
        "Clear list for administration and communication.",
        "No activity or financial detail.",
        "Track membership growth over time.",
        "Keep contact data accurate.",
    ),
    "all_subscriptions_text": (
        "All Subscriptions Report",
        "All subscription plans, active, expired and pending.",
        "Essential for revenue forecasting and access management.",
        "Does not capture one-time purchases.",
        "Analyse new subscriptions and churn per period.",
        "Monitor statuses and offer renewal incentives.",
    ),
    "all_financials_text": (
        "All Financials Report",
        "All financial transactions, income and expenses.",
        "Transparent view of all inflows and outflows.",
        "Needs careful categorization to be actionable.",
        "Compare income and expenses across periods.",
        "Review regularly and record every transaction.",
    ),
}

_DEFAULT = (
    "General Interpretation",
    "No specific interpretation available for this data type.",
    "Data provides objective insights.",
    "Interpretation requires context.",
    "Trends can be identified by comparing data points.",
    "Consult a professional for personalized insights.",
)


def interpretation_text(key: str) -> str:
    title, description, strengths, weaknesses, comparisons, advice = _INTERPRETATIONS.get(
        key, _DEFAULT
    )
    return (
        f"{title}\n\n"
        f"Description: {description}\n"
        f"Strengths: {strengths}\n"
        f"Weaknesses: {weaknesses}\n"
        f"Comparisons: {comparisons}\n"
        f"Advice: {advice}\n\n"
        f"{NOTE}"
    )
