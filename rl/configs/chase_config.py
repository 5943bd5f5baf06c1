"""
Evaluation configuration for the Torch Chase environment
Scripted pointer policies run against ChaseEnv with these settings.
"""

# Environment parameters
ENV_CONFIG = {
    # "render_mode": None,  # evaluation is headless unless --render is given
    "width": 800,
    "height": 600,
    "frame_skip": 4,
    "max_steps": 4500,      # 5 minutes of game time at 60 FPS / frame_skip 4
    "pointer_speed": 6.0,
    "k_coins": 5,
    "m_bombs": 4,
    "score_scale": 0.01,
    "end_penalty": 5.0,
}

# ==============================================================================
# POLICY SETTINGS
# ==============================================================================

GREEDY_POLICY_CONFIG = {
    "bomb_clearance": 45.0,   # px kept between the cursor sprite and any bomb
    "key_preference": 1.5,    # go for the key unless a coin is this much closer
    "key_min_score": 0,       # only chase the key once the score reaches this
}

# ==============================================================================
# EXPERIMENT CONFIGURATION
# ==============================================================================

EXPERIMENT_CONFIG = {
    "seeds": [42, 123, 456],
    "n_eval_episodes": 10,
    "policies": ["random", "greedy"],
    "log_dir": "./logs",
}


def get_experiment_matrix():
    """
    Generate all evaluation runs.
    Returns list of dicts with: name, policy, seed
    """
    experiments = []

    for policy in EXPERIMENT_CONFIG["policies"]:
        for seed in EXPERIMENT_CONFIG["seeds"]:
            experiments.append({
                "name": f"{policy}_seed{seed}",
                "policy": policy,
                "seed": seed,
            })

    return experiments


if __name__ == "__main__":
    experiments = get_experiment_matrix()
    print(f"Total runs: {len(experiments)}")
    print("-" * 50)
    for exp in experiments:
        print(f"  {exp['name']:25} | policy={exp['policy']}")
    print("-" * 50)
