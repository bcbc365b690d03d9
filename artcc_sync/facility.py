"""
Static facility data for the Memphis ARTCC.

Airport allow-list, controller position prefixes, neighboring centers
and the lateral boundary of the center's airspace. Boundary vertices are
(longitude, latitude), closed ring.
"""

from typing import List, Tuple

AIRPORTS: List[str] = [
    'KBNA', 'KFSM', 'KHSV', 'KJAN', 'KLIT', 'KCBM', 'KHOP', 'KNMM', 'KASG',
    'KCGI', 'KEOD', 'KFYV', 'KGLH', 'KGTR', 'KGWO', 'KHKS', 'KHUA', 'KJWN',
    'KMEI', 'KMEM', 'KMKL', 'KMQY', 'KNJW', 'KNQA', 'KOLV', 'KPAH', 'KROG',
    'KTUP', 'KXNA',
]

# Controller callsigns start with the three-letter airport identifier
ATC_POSITIONS: List[str] = [code[1:] for code in AIRPORTS]

NEIGHBORS: List[str] = ['ATL', 'ZHU', 'FTW', 'IND', 'KC']

# Flight service stations share a position prefix but are not facility staff
EXCLUDED_CALLSIGNS: List[str] = ['PRC_FSS']

AIRSPACE: List[Tuple[float, float]] = [
    (-95.6125, 36.016667),
    (-95.4, 36.204167),
    (-95.195833, 36.2875),
    (-94.683333, 36.433333),
    (-94.408333, 36.491667),
    (-93.25, 36.725),
    (-90.566667, 37.15),
    (-88.833333, 37.533333),
    (-88.316667, 37.725),
    (-87.397222, 37.275),
    (-86.15, 37.3),
    (-85.745833, 37.013889),
    (-85.583333, 36.9),
    (-85.4, 36.183333),
    (-85.283333, 35.65),
    (-86.0, 35.516667),
    (-87.0, 35.333333),
    (-87.0, 34.366667),
    (-87.25, 34.1),
    (-87.55, 34.016667),
    (-87.633333, 33.316667),
    (-87.986111, 33.043056),
    (-87.85, 32.697222),
    (-88.347222, 32.330556),
    (-88.325, 31.516667),
    (-88.9, 31.547222),
    (-89.85, 31.630556),
    (-90.345833, 31.65),
    (-91.308333, 31.9125),
    (-91.688889, 32.283333),
    (-91.9, 33.004167),
    (-93.158333, 33.95),
    (-93.541667, 34.033333),
    (-94.533333, 34.533333),
    (-94.783333, 34.691667),
    (-95.0, 35.066667),
    (-95.0, 35.383333),
    (-95.0, 35.654167),
    (-95.6125, 36.016667),
]
