"""GraphQL query strings for WCL API v2."""

REPORT_SESSION = """
query ReportSession($code: String!) {
    reportData {
        report(code: $code) {
            code
            title
            startTime
            endTime
            fights(killType: Encounters) {
                id
                name
                encounterID
                startTime
                endTime
                kill
                difficulty
                fightPercentage
                friendlyPlayers
            }
        }
    }
}
"""

REPORT_MASTER_DATA = """
query ReportMasterData($code: String!) {
    reportData {
        report(code: $code) {
            masterData {
                actors {
                    id
                    name
                    type
                    subType
                    icon
                }
                abilities {
                    gameID
                    name
                }
            }
        }
    }
}
"""

REPORT_EVENTS = """
query ReportEvents($code: String!, $fightIDs: [Int], $startTime: Float,
                   $endTime: Float, $dataType: EventDataType) {
    reportData {
        report(code: $code) {
            events(
                fightIDs: $fightIDs,
                startTime: $startTime,
                endTime: $endTime,
                dataType: $dataType,
                limit: 10000
            ) {
                data
                nextPageTimestamp
            }
        }
    }
}
"""

REPORT_DAMAGE_TABLE = """
query ReportDamageTable($code: String!, $fightIDs: [Int], $startTime: Float,
                        $endTime: Float) {
    reportData {
        report(code: $code) {
            table(
                fightIDs: $fightIDs,
                dataType: DamageDone,
                startTime: $startTime,
                endTime: $endTime
            )
        }
    }
}
"""

ENCOUNTER_CHARACTER_RANKINGS = """
query EncounterCharacterRankings($encounterID: Int!, $difficulty: Int,
                                 $serverRegion: String) {
    worldData {
        encounter(id: $encounterID) {
            characterRankings(
                difficulty: $difficulty,
                serverRegion: $serverRegion,
                metric: dps
            )
        }
    }
}
"""
