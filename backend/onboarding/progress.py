"""
Wizard progress bookkeeping: form-data merging and step completion flags.
"""
import copy

TOTAL_STEPS = 9
MIN_STEP = 1

# form_data key -> step flag it implies
FORM_DATA_STEP_KEYS = {
    'step1': 1,
    'step2': 2,
    'step3': 3,
    'step4': 4,
    'step5': 5,
    'final': 6,
}


def clamp_step(value, default=MIN_STEP) -> int:
    """Coerce to int and clamp into 1..9"""
    try:
        step = int(value)
    except (TypeError, ValueError):
        return default
    return max(MIN_STEP, min(TOTAL_STEPS, step))


def deep_merge_form_data(target, patch):
    """
    Merge patch into a copy of target.

    Dicts merge recursively; lists and scalars replace; an explicit None in
    the patch replaces the existing value.
    """
    if not isinstance(target, dict):
        target = {}
    result = copy.deepcopy(target)
    if not isinstance(patch, dict):
        return result
    for key, value in patch.items():
        if value is None:
            result[key] = None
        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge_form_data(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def empty_flags():
    return {f'step_{i}_completed': False for i in range(1, TOTAL_STEPS + 1)}


def build_reconciled_flags(existing_flags, existing_current_step, current_step, form_data):
    """
    Completion flags consistent with how far the merchant has got.

    Steps before the furthest current step are complete, steps whose form
    section exists are complete, and nothing already complete is cleared.
    """
    flags = empty_flags()
    for key, value in (existing_flags or {}).items():
        if key in flags and value:
            flags[key] = True

    furthest = max(clamp_step(existing_current_step), clamp_step(current_step))
    for step in range(1, furthest):
        flags[f'step_{step}_completed'] = True

    form_data = form_data or {}
    for key, step in FORM_DATA_STEP_KEYS.items():
        if form_data.get(key):
            flags[f'step_{step}_completed'] = True
    return flags


def count_completed_steps(flags) -> int:
    return sum(1 for value in (flags or {}).values() if value)


def progress_to_dict(progress):
    """API shape of a RegistrationProgress row"""
    if progress is None:
        return None
    data = {
        'id': progress.id,
        'parent_id': progress.parent_id,
        'store_id': progress.store_id,
        'current_step': progress.current_step,
        'next_step': progress.next_step,
        'total_steps': progress.total_steps,
        'completed_steps': progress.completed_steps,
        'form_data': progress.form_data or {},
        'registration_status': progress.registration_status,
        'created_at': progress.created_at.isoformat() if progress.created_at else None,
        'updated_at': progress.updated_at.isoformat() if progress.updated_at else None,
    }
    data.update(progress.get_flags())
    return data
