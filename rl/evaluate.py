"""
Evaluation script for scripted Torch Chase pointer policies
Runs a random and a greedy coin-chasing policy on ChaseEnv and reports
score, level reached and why each episode ended.
"""

import argparse
import csv
import math
import os
import time
from collections import Counter
from typing import Any, Dict, List, Optional

import numpy as np

from game.torchchase import ChaseEnv
from game.torchchase.chase_env import MOVES
from game.torchchase.entities import PowerUpKind
from game.torchchase.utils import distance, normalize
from rl.configs.chase_config import ENV_CONFIG, EXPERIMENT_CONFIG, GREEDY_POLICY_CONFIG


class RandomPolicy:
    """Uniformly random pointer moves"""

    def __init__(self, env: ChaseEnv, seed: Optional[int] = None):
        self.env = env
        self.env.action_space.seed(seed)

    def __call__(self, obs) -> int:
        return int(self.env.action_space.sample())


class GreedyPolicy:
    """
    Steer the cursor sprite toward the nearest coin (or the key when it is
    not much farther away) while keeping clear of bombs.
    Reads the live session instead of the observation vector.
    """

    def __init__(
        self,
        env: ChaseEnv,
        bomb_clearance: float = 45.0,
        key_preference: float = 1.5,
        key_min_score: int = 0,
    ):
        self.env = env
        self.bomb_clearance = bomb_clearance
        self.key_preference = key_preference
        self.key_min_score = key_min_score

    def _target(self, session, origin):
        ox, oy = origin
        coin = min(session.registry.coins, key=lambda c: distance(ox, oy, c.x, c.y), default=None)
        key = session.registry.keys[0] if session.registry.keys else None

        if key is not None and session.state.score >= self.key_min_score:
            key_dist = distance(ox, oy, key.x, key.y)
            if coin is None or key_dist <= self.key_preference * distance(ox, oy, coin.x, coin.y):
                return key
        return coin

    def __call__(self, obs) -> int:
        session = self.env.session
        origin = session.interaction_point()
        target = self._target(session, origin)
        if target is None:
            return 0

        want_x, want_y = normalize(target.x - origin[0], target.y - origin[1])
        shielded = session.powerups.is_active(PowerUpKind.SHIELD)
        reach = self.env.pointer_speed * self.env.frame_skip

        best_action, best_score = 0, -math.inf
        for action, (dx, dy) in enumerate(MOVES):
            nx = origin[0] + dx * reach
            ny = origin[1] + dy * reach
            score = dx * want_x + dy * want_y
            if not shielded:
                for bomb in session.registry.bombs:
                    if distance(nx, ny, bomb.x, bomb.y) < bomb.half_width + self.bomb_clearance:
                        score -= 10.0
            if score > best_score:
                best_action, best_score = action, score
        return best_action


POLICIES = {
    "random": lambda env, seed: RandomPolicy(env, seed),
    "greedy": lambda env, seed: GreedyPolicy(env, **GREEDY_POLICY_CONFIG),
}


def evaluate_policy(
    policy_name: str = "greedy",
    n_episodes: int = 10,
    render: bool = False,
    seed: Optional[int] = None,
    csv_path: Optional[str] = None,
    env_config: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Evaluate a scripted policy

    Args:
        policy_name: 'random' or 'greedy'
        n_episodes: Number of episodes to evaluate
        render: Whether to render the environment
        seed: Base random seed (episode i uses seed + i)
        csv_path: Optional CSV file for per-episode results
        env_config: Overrides for ENV_CONFIG
    """
    if policy_name not in POLICIES:
        raise ValueError(f"Unknown policy: {policy_name}")

    config = dict(ENV_CONFIG)
    config.update(env_config or {})
    env = ChaseEnv(render_mode="human" if render else None, **config)
    policy = POLICIES[policy_name](env, seed)

    csv_file = None
    csv_writer = None
    if csv_path:
        os.makedirs(os.path.dirname(csv_path) or ".", exist_ok=True)
        csv_file = open(csv_path, "w", newline="")
        csv_writer = csv.writer(csv_file)
        csv_writer.writerow(["policy", "episode", "reward", "length", "score", "level", "end_reason"])

    episode_rewards: List[float] = []
    episode_lengths: List[int] = []
    episode_scores: List[int] = []
    episode_levels: List[int] = []
    end_reasons: Counter = Counter()

    try:
        for episode in range(n_episodes):
            obs, info = env.reset(seed=seed + episode if seed is not None else None)

            terminated = False
            truncated = False
            total_reward = 0.0
            steps = 0

            while not (terminated or truncated):
                action = policy(obs)
                obs, reward, terminated, truncated, info = env.step(action)
                total_reward += reward
                steps += 1

                if render and env._window:
                    env._window.dispatch_events()
                    env._window.flip()
                    time.sleep(0.01)

            episode_rewards.append(total_reward)
            episode_lengths.append(steps)
            episode_scores.append(info["score"])
            episode_levels.append(info["level"])
            end_reasons[info["end_reason"] or "truncated"] += 1

            if csv_writer:
                csv_writer.writerow([
                    policy_name, episode + 1, total_reward, steps,
                    info["score"], info["level"], info["end_reason"] or "truncated",
                ])
                csv_file.flush()

            print(f"Episode {episode + 1}/{n_episodes}: "
                  f"Score = {info['score']}, Level = {info['level']}, "
                  f"Reward = {total_reward:.2f}, Ended by {info['end_reason'] or 'truncation'}")
    finally:
        env.close()
        if csv_file:
            csv_file.close()

    print("\n" + "=" * 50)
    print(f"{policy_name} policy ({n_episodes} episodes):")
    print(f"Mean Score: {np.mean(episode_scores):.1f} ± {np.std(episode_scores):.1f}")
    print(f"Mean Level Reached: {np.mean(episode_levels):.2f}")
    print(f"Mean Reward: {np.mean(episode_rewards):.2f}")
    print(f"Mean Episode Length: {np.mean(episode_lengths):.1f}")
    print(f"End reasons: {dict(end_reasons)}")
    print("=" * 50)

    return {
        "mean_score": float(np.mean(episode_scores)),
        "std_score": float(np.std(episode_scores)),
        "mean_level": float(np.mean(episode_levels)),
        "mean_reward": float(np.mean(episode_rewards)),
        "mean_length": float(np.mean(episode_lengths)),
        "episode_scores": episode_scores,
        "end_reasons": dict(end_reasons),
    }


def main():
    parser = argparse.ArgumentParser(description="Evaluate scripted Torch Chase policies")
    parser.add_argument(
        "--policy",
        type=str,
        default="all",
        choices=["random", "greedy", "all"],
        help="Policy to evaluate (default: all)",
    )
    parser.add_argument(
        "--n-episodes",
        type=int,
        default=EXPERIMENT_CONFIG["n_eval_episodes"],
        help="Number of evaluation episodes (default: %(default)s)",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="Render episodes in an arcade window",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )
    parser.add_argument(
        "--csv-dir",
        type=str,
        default=None,
        help="Write per-episode results to <csv-dir>/<policy>_eval.csv",
    )

    args = parser.parse_args()

    policies = EXPERIMENT_CONFIG["policies"] if args.policy == "all" else [args.policy]
    results = {}
    for name in policies:
        csv_path = os.path.join(args.csv_dir, f"{name}_eval.csv") if args.csv_dir else None
        results[name] = evaluate_policy(
            policy_name=name,
            n_episodes=args.n_episodes,
            render=args.render,
            seed=args.seed,
            csv_path=csv_path,
        )
        print()

    if "random" in results and "greedy" in results:
        improvement = results["greedy"]["mean_score"] - results["random"]["mean_score"]
        print(f"Greedy improvement over random: {improvement:.1f} points")


if __name__ == "__main__":
    main()
