# lineup_core/config.py
from __future__ import annotations
import textwrap

# ===== Planner defaults (mirrored by models.PlannerConfig) =====
DEFAULT_CONFIG = {
    "format": "9v9",
    "goalkeeper_rule": "same-half",
    "goalkeeper_cap": None,          # None -> format cap
    "fair_minimum_ratio": 0.75,      # 3 of 4 quarters
    "oracle_timeout": 10.0,          # seconds
    "history_games": 7,              # most recent games feeding position history
}

# ===== Built-in formations (slot number -> abbreviation; slot 1 is always GK) =====
DEFAULT_FORMATIONS_YAML = textwrap.dedent("""\
7v7:
  2-3-1:
    1: GK
    2: RB
    3: LB
    7: RM
    6: CM
    11: LM
    9: ST
  3-2-1:
    1: GK
    2: RB
    4: CB
    3: LB
    6: CM
    8: CM
    9: ST
  2-1-2-1:
    1: GK
    2: RB
    3: LB
    6: CDM
    7: RW
    11: LW
    9: ST

9v9:
  3-3-2:
    1: GK
    2: RB
    3: LB
    4: CB
    6: CDM
    7: RM
    8: LM
    10: CAM
    9: CF
  3-2-3:
    1: GK
    2: RB
    3: LB
    4: CB
    6: CDM
    8: CDM
    7: RW
    11: LW
    9: CF
  2-4-2:
    1: GK
    4: CB
    5: CB
    2: RM
    3: LM
    6: CM
    8: CM
    9: ST
    10: ST
  4-2-2:
    1: GK
    2: RB
    3: LB
    4: CB
    5: CB
    6: CM
    8: CM
    9: ST
    10: ST

11v11:
  4-4-2:
    1: GK
    2: RB
    3: LB
    4: CB
    5: CB
    7: RM
    6: CM
    8: CM
    11: LM
    9: ST
    10: ST
  4-3-3:
    1: GK
    2: RB
    3: LB
    4: CB
    5: CB
    6: CDM
    8: CM
    10: CM
    7: RW
    11: LW
    9: ST
  3-5-2:
    1: GK
    4: CB
    5: CB
    3: CB
    2: RWB
    11: LWB
    6: CDM
    8: CM
    10: CM
    9: ST
    7: ST
  4-2-3-1:
    1: GK
    2: RB
    3: LB
    4: CB
    5: CB
    6: CDM
    8: CDM
    7: RW
    10: CAM
    11: LW
    9: ST
""")

# ===== Sample roster compatible with io.load_roster_csv =====
DEFAULT_SAMPLE_ROSTER_CSV = textwrap.dedent("""\
id,name,preferred_positions,absent_quarters,status
1,Alex Carter,GK;CB,,
2,Blake Diaz,CM;ST,,
3,Casey Ellis,RB;LB,,
4,Drew Fox,ST;RW,,
5,Emery Gray,CB;CDM,,
6,Fin Hayes,LM;RM,,
7,Gabe Irwin,GK;LB,,
8,Harper Jones,CAM;CM,,
9,Izzy Kim,RB;CB,,
10,Jordan Lee,CF;ST,,
11,Kai Miller,LB;LM,2,injured
12,Lane Novak,CDM;CM,all,absent
""")
